# pcp_app/blueprints/notificacoes.py
from flask import Blueprint, request, jsonify
from ..utils import obter_controlador, dados_requisicao
from ..controlador import usuario_publico
from ..notificacoes_regras import DESTINO_TODOS, TIPO_INFO

notificacoes_bp = Blueprint('notificacoes', __name__, url_prefix='/api/notificacoes')


# Rota para buscar os alertas visíveis de um usuário
@notificacoes_bp.route('/<string:usuario_id>', methods=['GET'])
def get_notificacoes(usuario_id):
    controlador = obter_controlador()
    # A varredura de prazos roda antes para o painel nunca ficar atrasado
    controlador.verificar_alertas()
    return jsonify(controlador.notificacoes_visiveis(usuario_id))


@notificacoes_bp.route('', methods=['POST'])
def criar_alerta():
    """Alerta manual enviado por um usuário para outro ou para todos ('ALL')."""
    dados = dados_requisicao(request)
    alerta = obter_controlador().criar_alerta(
        dados.get('remetente_id'),
        dados.get('destinatario_id') or DESTINO_TODOS,
        dados.get('titulo'),
        dados.get('mensagem'),
        dados.get('tipo', TIPO_INFO),
        dados.get('data_referencia'),
    )
    return jsonify({'status': 'success', 'notificacao': alerta}), 201


@notificacoes_bp.route('/<string:usuario_id>/<string:notificacao_id>/lida', methods=['POST'])
def marcar_como_lida(usuario_id, notificacao_id):
    obter_controlador().marcar_como_lida(usuario_id, notificacao_id)
    return jsonify({'status': 'success'})


@notificacoes_bp.route('/<string:usuario_id>/marcar-todas', methods=['POST'])
def marcar_todas(usuario_id):
    obter_controlador().marcar_todas_como_lidas(usuario_id)
    return jsonify({'status': 'success'})


@notificacoes_bp.route('/<string:usuario_id>/<string:notificacao_id>/acao', methods=['POST'])
def executar_acao(usuario_id, notificacao_id):
    usuario = obter_controlador().executar_acao_notificacao(usuario_id, notificacao_id)
    return jsonify({'status': 'success', 'usuario': usuario_publico(usuario)})

# pcp_app/blueprints/ordens.py
import logging
from flask import Blueprint, request, jsonify
from ..utils import obter_controlador, dados_requisicao
from ..erros import ErroValidacao
from ..transicoes import MODO_CICLO
from ..filtros import ABA_OPERACIONAL, FILTRO_TODAS

logger = logging.getLogger(__name__)

ordens_bp = Blueprint('ordens', __name__, url_prefix='/api/ordens')


@ordens_bp.route('', methods=['GET'])
def listar_ordens():
    """Lista os itens com os mesmos filtros do painel: aba, busca, filtro e setor."""
    controlador = obter_controlador()
    ordens = controlador.listar_ordens(
        aba=request.args.get('aba', ABA_OPERACIONAL),
        busca=request.args.get('busca', ''),
        filtro=request.args.get('filtro', FILTRO_TODAS),
        setor=request.args.get('setor') or None,
    )
    return jsonify(ordens)


@ordens_bp.route('', methods=['POST'])
def salvar_ordens():
    dados = dados_requisicao(request)
    cabecalho = dados.get('cabecalho') or {}
    itens = dados.get('itens') or []
    ids_excluir = dados.get('ids_excluir') or []
    if not itens and not ids_excluir:
        raise ErroValidacao('Nenhum item informado.')

    controlador = obter_controlador()
    salvas = controlador.salvar_ordens(cabecalho, itens, dados.get('usuario_id'), ids_excluir)
    logger.info(f"O.R #{cabecalho.get('numero_or')} salva com {len(salvas)} item(ns).")
    return jsonify({'status': 'success', 'ordens': salvas}), 201


@ordens_bp.route('/<string:ordem_id>', methods=['GET'])
def obter_ordem(ordem_id):
    return jsonify(obter_controlador().buscar_ordem(ordem_id))


@ordens_bp.route('/<string:ordem_id>/status', methods=['PUT'])
def atualizar_status(ordem_id):
    dados = dados_requisicao(request)
    if not dados.get('etapa'):
        raise ErroValidacao('Informe a etapa.')
    ordem, entrada = obter_controlador().atualizar_status(
        ordem_id, dados['etapa'], dados.get('usuario_id'), dados.get('modo', MODO_CICLO)
    )
    return jsonify({'status': 'success', 'ordem': ordem, 'historico': entrada})


@ordens_bp.route('/<string:ordem_id>/arquivar', methods=['POST'])
def arquivar_ordem(ordem_id):
    ordem = obter_controlador().arquivar_ordem(ordem_id)
    return jsonify({'status': 'success', 'ordem': ordem})


@ordens_bp.route('/<string:ordem_id>/reativar', methods=['POST'])
def reativar_ordem(ordem_id):
    ordem = obter_controlador().reativar_ordem(ordem_id)
    return jsonify({'status': 'success', 'ordem': ordem})


@ordens_bp.route('/<string:ordem_id>', methods=['DELETE'])
def excluir_ordem(ordem_id):
    dados = dados_requisicao(request)
    obter_controlador().excluir_ordem(ordem_id, dados.get('usuario_id'))
    return jsonify({'status': 'success'})


@ordens_bp.route('/excluir-em-lote', methods=['POST'])
def excluir_em_lote():
    dados = dados_requisicao(request)
    ids = dados.get('ids') or []
    if not ids:
        raise ErroValidacao('Nenhum item selecionado.')
    logs = obter_controlador().excluir_ordens_em_lote(ids, dados.get('usuario_id'))
    return jsonify({'status': 'success', 'excluidos': len(logs)})


@ordens_bp.route('/<string:ordem_id>/historico', methods=['GET'])
def historico(ordem_id):
    """Histórico do item, do mais recente para o mais antigo."""
    return jsonify(obter_controlador().historico_ordem(ordem_id))


@ordens_bp.route('/qr', methods=['GET'])
def localizar_por_qr():
    texto = request.args.get('texto', '')
    return jsonify(obter_controlador().localizar_por_qr(texto))


@ordens_bp.route('/proxima-referencia', methods=['GET'])
def proxima_referencia():
    numero_or = request.args.get('numero_or', '')
    return jsonify({'numero_item': obter_controlador().proxima_referencia(numero_or)})


@ordens_bp.route('/status-sincronizacao', methods=['GET'])
def status_sincronizacao():
    return jsonify(obter_controlador().status_sincronizacao())


@ordens_bp.route('/recarregar', methods=['POST'])
def recarregar():
    controlador = obter_controlador()
    controlador.carregar()
    return jsonify(controlador.status_sincronizacao())

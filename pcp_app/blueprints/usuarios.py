# pcp_app/blueprints/usuarios.py
import logging
from flask import Blueprint, request, jsonify
from ..extensions import db
from ..models import Usuario
from ..utils import obter_controlador, dados_requisicao
from ..erros import ErroValidacao
from ..controlador import usuarios_padrao, usuario_publico

logger = logging.getLogger(__name__)

usuarios_bp = Blueprint('usuarios', __name__, url_prefix='/api/usuarios')


def garantir_usuarios_padrao():
    """Cria os usuários iniciais se a tabela estiver vazia. Chamar dentro de um app_context."""
    if Usuario.query.first():
        return
    for dados in usuarios_padrao():
        db.session.add(Usuario(**dados))
    try:
        db.session.commit()
        logger.info("Usuários padrão criados.")
    except Exception as e:
        db.session.rollback()
        logger.error(f"ERRO ao criar usuários padrão: {e}")
        raise


@usuarios_bp.route('/login', methods=['POST'])
def login():
    """Login por e-mail/login ou nome, sem diferenciar maiúsculas."""
    dados = dados_requisicao(request)
    if not dados.get('login') or not dados.get('senha'):
        return jsonify({'error': 'Login e senha são obrigatórios.'}), 400

    usuario = obter_controlador().autenticar(dados['login'], dados['senha'])
    if usuario:
        return jsonify(usuario_publico(usuario))
    return jsonify({'error': 'Credenciais inválidas.'}), 401


@usuarios_bp.route('', methods=['GET'])
def get_all_users():
    return jsonify([usuario_publico(u) for u in obter_controlador().usuarios])


@usuarios_bp.route('', methods=['POST'])
def create_user():
    usuario = obter_controlador().criar_usuario(dados_requisicao(request))
    return jsonify({'status': 'success', 'usuario': usuario_publico(usuario)}), 201


@usuarios_bp.route('/<string:usuario_id>', methods=['PUT'])
def update_user(usuario_id):
    usuario = obter_controlador().atualizar_usuario(usuario_id, dados_requisicao(request))
    return jsonify({'status': 'success', 'usuario': usuario_publico(usuario)})


@usuarios_bp.route('/<string:usuario_id>', methods=['DELETE'])
def delete_user(usuario_id):
    dados = dados_requisicao(request)
    obter_controlador().excluir_usuario(usuario_id, dados.get('autor_id'))
    return jsonify({'status': 'success'})


@usuarios_bp.route('/<string:usuario_id>/senha', methods=['PUT'])
def set_password(usuario_id):
    dados = dados_requisicao(request)
    obter_controlador().definir_senha(usuario_id, dados.get('senha'))
    return jsonify({'status': 'success'})


@usuarios_bp.route('/solicitar-reset', methods=['POST'])
def solicitar_reset():
    dados = dados_requisicao(request)
    if not dados.get('login'):
        raise ErroValidacao('Informe o login.')
    enviados = obter_controlador().solicitar_reset_senha(dados['login'])
    return jsonify({'status': 'success', 'admins_notificados': len(enviados)})

# pcp_app/blueprints/configuracoes.py
from flask import Blueprint, request, jsonify
from ..utils import obter_controlador, dados_requisicao
from ..erros import ErroValidacao
from ..etapas import (
    ETAPAS, ROTULOS_ETAPAS, ABREVIACOES_ETAPAS, STATUS_VALIDOS, STATUS_LEGADOS,
    PRIORIDADES, ROLES_VALIDAS, DEPARTAMENTOS_VALIDOS, COLUNAS_KANBAN
)

config_bp = Blueprint('configuracoes', __name__, url_prefix='/api/configuracoes')


@config_bp.route('', methods=['GET'])
def get_configuracoes():
    return jsonify(obter_controlador().configuracoes)


@config_bp.route('', methods=['PUT'])
def set_configuracoes():
    configuracoes = obter_controlador().atualizar_configuracoes(dados_requisicao(request))
    return jsonify({'status': 'success', 'configuracoes': configuracoes})


@config_bp.route('/ramais', methods=['GET'])
def get_ramais():
    return jsonify(obter_controlador().ramais)


@config_bp.route('/ramais', methods=['PUT'])
def set_ramais():
    ramais = request.get_json(silent=True)
    if not isinstance(ramais, list):
        raise ErroValidacao('Envie a lista de ramais.')
    return jsonify({'status': 'success', 'ramais': obter_controlador().atualizar_ramais(ramais)})


@config_bp.route('/vocabulario', methods=['GET'])
def get_vocabulario():
    """Etapas, status, papéis e prioridades aceitos pelo sistema, para montar os formulários."""
    return jsonify({
        'etapas': [
            {'id': etapa, 'rotulo': ROTULOS_ETAPAS[etapa], 'abreviacao': ABREVIACOES_ETAPAS[etapa]}
            for etapa in ETAPAS
        ],
        'status': STATUS_VALIDOS,
        'status_legados': STATUS_LEGADOS,
        'prioridades': PRIORIDADES,
        'roles': ROLES_VALIDAS,
        'departamentos': DEPARTAMENTOS_VALIDOS,
        'colunas_kanban': [coluna for coluna, _ in COLUNAS_KANBAN],
    })

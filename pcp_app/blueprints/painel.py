# pcp_app/blueprints/painel.py
from flask import Blueprint, request, jsonify
from ..utils import obter_controlador
from ..erros import ErroValidacao
from ..filtros import ABA_OPERACIONAL, FILTRO_TODAS, CALENDARIO_TODAS

painel_bp = Blueprint('painel', __name__, url_prefix='/api/painel')


def _inteiro(nome, padrao=None):
    valor = request.args.get(nome)
    if valor is None or valor == '':
        if padrao is None:
            raise ErroValidacao(f"Parâmetro '{nome}' é obrigatório.")
        return padrao
    try:
        return int(valor)
    except ValueError:
        raise ErroValidacao(f"Parâmetro '{nome}' inválido: '{valor}'.")


@painel_bp.route('/estatisticas', methods=['GET'])
def estatisticas():
    return jsonify(obter_controlador().estatisticas())


@painel_bp.route('/tabela', methods=['GET'])
def tabela():
    """Semanas -> dias -> grupos de O.R, na ordem pedida (asc/desc)."""
    semanas = obter_controlador().tabela(
        direcao=request.args.get('direcao', 'asc'),
        aba=request.args.get('aba', ABA_OPERACIONAL),
        busca=request.args.get('busca', ''),
        filtro=request.args.get('filtro', FILTRO_TODAS),
        setor=request.args.get('setor') or None,
    )
    return jsonify(semanas)


@painel_bp.route('/kanban', methods=['GET'])
def kanban():
    return jsonify(obter_controlador().kanban(request.args.get('busca', '')))


@painel_bp.route('/calendario', methods=['GET'])
def calendario():
    controlador = obter_controlador()
    hoje = controlador.relogio()
    dias = controlador.calendario(
        _inteiro('ano', hoje.year),
        _inteiro('mes', hoje.month),
        request.args.get('modo', CALENDARIO_TODAS),
        request.args.get('busca', ''),
    )
    return jsonify(dias)


@painel_bp.route('/calendario/ano', methods=['GET'])
def calendario_anual():
    controlador = obter_controlador()
    resumo = controlador.resumo_anual(
        _inteiro('ano', controlador.relogio().year),
        request.args.get('modo', CALENDARIO_TODAS),
    )
    return jsonify(resumo)


@painel_bp.route('/calendario/semana', methods=['GET'])
def calendario_semana():
    """Domingo a sábado da semana que contém `data` (padrão: hoje)."""
    dias = obter_controlador().calendario_semana(
        request.args.get('data') or None,
        request.args.get('modo', CALENDARIO_TODAS),
        request.args.get('busca', ''),
    )
    return jsonify(dias)


@painel_bp.route('/relatorio', methods=['GET'])
def relatorio():
    return jsonify(obter_controlador().relatorio(
        request.args.get('inicio') or None,
        request.args.get('fim') or None,
    ))


@painel_bp.route('/limpeza', methods=['GET'])
def analisar_limpeza():
    """Itens arquivados do período; os ids seguem para /api/ordens/excluir-em-lote."""
    itens = obter_controlador().analisar_limpeza(request.args.get('inicio'), request.args.get('fim'))
    return jsonify({'total': len(itens), 'ids': [o['id'] for o in itens], 'itens': itens})

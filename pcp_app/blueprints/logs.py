# pcp_app/blueprints/logs.py
from flask import Blueprint, request, jsonify
from ..utils import obter_controlador

logs_bp = Blueprint('logs', __name__, url_prefix='/api/logs')


@logs_bp.route('', methods=['GET'])
def get_logs():
    """
    Log global de exclusões, do mais recente para o mais antigo.
    Aceita ?tipo=DELETE_ORDER ou ?tipo=DELETE_USER.
    """
    logs = obter_controlador().logs_globais
    tipo = request.args.get('tipo')
    if tipo:
        logs = [l for l in logs if l['tipo_acao'] == tipo]
    return jsonify(sorted(logs, key=lambda l: l['timestamp'], reverse=True))

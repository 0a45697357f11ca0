# pcp_app/utils.py
from datetime import datetime
from flask import current_app
from .extensions import tz_brasilia


def agora_iso():
    return datetime.now(tz_brasilia).isoformat()


def formatar_data_br(data_str):
    """'2024-05-03' -> '03/05/2024'. Strings fora do padrão voltam intactas."""
    if not data_str:
        return ''
    return '/'.join(reversed(str(data_str).split('-')))


def obter_controlador():
    """Retorna o controlador de produção registrado na aplicação atual."""
    return current_app.extensions['pcp_controlador']


def dados_requisicao(request):
    """Corpo JSON da requisição, ou dicionário vazio."""
    return request.get_json(silent=True) or {}

import sys
import os
import logging
from flask import Flask, jsonify
from .extensions import db
from .erros import ErroPCP

logger = logging.getLogger(__name__)


def resource_path(relative_path):
    try:
        base_path = sys._MEIPASS
    except Exception:
        base_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    return os.path.join(base_path, relative_path)


def _timeout_do_ambiente():
    valor = os.environ.get('PCP_TIMEOUT_CARREGAMENTO')
    if valor is None:
        return 5.0
    if valor.strip().lower() in ('', 'none', '0'):
        return None
    return float(valor)


def create_app(config=None):
    app = Flask(__name__)

    # --- CONFIGURAÇÃO ---
    db_url = os.environ.get('PCP_DATABASE_URL') or 'sqlite:///' + resource_path('pcp_local.db')
    app.config['SQLALCHEMY_DATABASE_URI'] = db_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['PCP_CACHE_PATH'] = os.environ.get('PCP_CACHE_PATH') or resource_path('pcp_cache.json')
    app.config['PCP_TIMEOUT_CARREGAMENTO'] = _timeout_do_ambiente()
    app.config['PCP_SINCRONIZACAO_ASSINCRONA'] = os.environ.get('PCP_SINCRONIZACAO_ASSINCRONA') == '1'
    app.config['PCP_INTERVALO_ALERTAS'] = 60
    if config:
        app.config.update(config)
    logger.info(f"Banco de dados: {app.config['SQLALCHEMY_DATABASE_URI']}")

    db.init_app(app)
    # --- FIM DA CONFIGURAÇÃO ---

    @app.errorhandler(ErroPCP)
    def tratar_erro_pcp(erro):
        return jsonify({'error': erro.mensagem}), erro.codigo_http

    # Importa e registra os blueprints
    from .blueprints.ordens import ordens_bp
    from .blueprints.painel import painel_bp
    from .blueprints.usuarios import usuarios_bp, garantir_usuarios_padrao
    from .blueprints.notificacoes import notificacoes_bp
    from .blueprints.logs import logs_bp
    from .blueprints.configuracoes import config_bp

    app.register_blueprint(ordens_bp)
    app.register_blueprint(painel_bp)
    app.register_blueprint(usuarios_bp)
    app.register_blueprint(notificacoes_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(config_bp)

    # Cria as tabelas no banco de dados se não existirem
    with app.app_context():
        from . import models
        db.create_all()
        garantir_usuarios_padrao()

    from .armazenamento import ArmazenamentoBanco, ArmazenamentoHibrido, CacheLocal
    from .controlador import ControladorProducao

    armazenamento = ArmazenamentoHibrido(
        ArmazenamentoBanco(app),
        CacheLocal(app.config['PCP_CACHE_PATH']),
        timeout=app.config['PCP_TIMEOUT_CARREGAMENTO'],
    )
    controlador = ControladorProducao(
        armazenamento,
        sincronizacao_assincrona=app.config['PCP_SINCRONIZACAO_ASSINCRONA'],
    )
    controlador.carregar()
    app.extensions['pcp_controlador'] = controlador

    return app

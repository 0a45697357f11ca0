# set_admin_password.py
import logging
from werkzeug.security import generate_password_hash
from pcp_app import create_app, db
from pcp_app.models import Usuario
from pcp_app.controlador import SENHA_PADRAO_ADMIN, USUARIOS_PADRAO
from pcp_app.blueprints.usuarios import garantir_usuarios_padrao

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

ADMIN_PADRAO = next(u for u in USUARIOS_PADRAO if u['role'] == 'Admin')


def setup_initial_admin(senha=SENHA_PADRAO_ADMIN):
    """Garante o administrador padrão ('adm') com a senha informada."""
    app = create_app()

    with app.app_context():
        logger.info("Verificando tabelas e usuários padrão...")
        db.create_all()
        garantir_usuarios_padrao()

        user = Usuario.query.filter_by(email=ADMIN_PADRAO['email']).first()
        if user:
            logger.info(f"O usuário {user.email} já existe. Atualizando senha e perfil...")
        else:
            logger.info(f"Criando usuário administrador: {ADMIN_PADRAO['email']}...")
            user = Usuario(**{k: v for k, v in ADMIN_PADRAO.items() if k != 'senha'})
            db.session.add(user)
        user.role = 'Admin'
        user.departamento = 'Geral'
        user.password_hash = generate_password_hash(senha)

        try:
            db.session.commit()
            admin_id = user.id
        except Exception as e:
            db.session.rollback()
            logger.error(f"Erro ao salvar: {e}")
            raise

    # Recarrega o estado em memória com a senha nova
    app.extensions['pcp_controlador'].carregar()
    logger.info("=" * 40)
    logger.info(" ADMIN CONFIGURADO COM SUCESSO!")
    logger.info(f" Usuário: {ADMIN_PADRAO['email']}")
    logger.info("=" * 40)
    return admin_id


if __name__ == "__main__":
    setup_initial_admin()

# run.py (versão para servidor)
import logging
from waitress import serve
from pcp_app import create_app
from pcp_app.controlador import AgendadorAlertas

logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger(__name__)

if __name__ == '__main__':
    PORT = 52080

    app = create_app()
    controlador = app.extensions['pcp_controlador']

    # Varredura de prazos a cada minuto, em segundo plano
    agendador = AgendadorAlertas(controlador, intervalo=app.config['PCP_INTERVALO_ALERTAS'])
    agendador.iniciar()

    logger.info("--- Servidor do Controle de Produção ---")
    logger.info(f"Iniciando na porta: {PORT}")
    logger.info(f"Para acessar, use http://<IP_DO_SERVIDOR>:{PORT} em um navegador.")

    # host='0.0.0.0' aceita conexões de qualquer IP da rede
    try:
        serve(app, host='0.0.0.0', port=PORT)
    finally:
        agendador.parar()
        controlador.encerrar()

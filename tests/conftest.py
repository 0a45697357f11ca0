"""Fixtures de teste do controle de produção."""
import copy
from datetime import datetime
import pytest

from pcp_app import create_app
from pcp_app.armazenamento import snapshot_vazio
from pcp_app.controlador import ControladorProducao, usuarios_padrao
from pcp_app.erros import ErroPersistencia
from pcp_app.extensions import tz_brasilia
from pcp_app.transicoes import nova_ordem

# Sexta-feira, 03/05/2024 (semana ISO 18)
AGORA = datetime(2024, 5, 3, 10, 0, tzinfo=tz_brasilia)
HOJE = '2024-05-03'
USUARIOS = usuarios_padrao()


class ArmazenamentoMemoria:
    """Armazenamento em memória com as mesmas operações do ArmazenamentoHibrido."""

    def __init__(self, snapshot=None, falhar=False):
        self.snapshot = snapshot or snapshot_vazio()
        self.falhar = falhar
        self.chamadas = []
        self.inscritos = []

    def inscrever(self, callback):
        self.inscritos.append(callback)

    def disparar(self, origem):
        for callback in self.inscritos:
            callback(origem)

    def carregar(self):
        return copy.deepcopy(self.snapshot)

    def _registrar(self, nome, *args):
        self.chamadas.append((nome,) + args)
        if self.falhar:
            raise ErroPersistencia(f"ERRO ao {nome}: servidor fora do ar")

    def criar_ordem(self, ordem, origem=None):
        self._registrar('criar_ordem', ordem['id'])
        self.snapshot['ordens'].append(copy.deepcopy(ordem))

    def atualizar_ordem(self, ordem, origem=None):
        self._registrar('atualizar_ordem', ordem['id'])
        self.snapshot['ordens'] = [o for o in self.snapshot['ordens'] if o['id'] != ordem['id']]
        self.snapshot['ordens'].append(copy.deepcopy(ordem))

    def excluir_ordem(self, ordem_id, origem=None):
        self._registrar('excluir_ordem', ordem_id)
        self.snapshot['ordens'] = [o for o in self.snapshot['ordens'] if o['id'] != ordem_id]

    def salvar_dados_globais(self, origem=None, **dados):
        self._registrar('salvar_dados_globais', sorted(dados))
        for chave, valor in dados.items():
            self.snapshot[chave] = copy.deepcopy(valor)


@pytest.fixture
def fazer_ordem():
    """Fábrica de itens: fazer_ordem(numero_or='112014', data_entrega='2024-05-06', ...)."""
    def _fazer(**campos):
        ordem = nova_ordem({
            'numero_or': campos.get('numero_or', '112014'),
            'cliente': 'CLIENTE TESTE',
            'vendedor': 'VENDEDOR',
            'item': 'FACHADA ACM',
            'data_entrega': HOJE,
        }, agora=AGORA.isoformat())
        ordem.update(campos)
        return ordem
    return _fazer


@pytest.fixture
def armazenamento():
    return ArmazenamentoMemoria({**snapshot_vazio(), 'usuarios': copy.deepcopy(USUARIOS)})


@pytest.fixture
def controlador(armazenamento):
    """Controlador com relógio fixo em 03/05/2024 e armazenamento em memória."""
    controlador = ControladorProducao(armazenamento, relogio=lambda: AGORA)
    controlador.carregar()
    return controlador


@pytest.fixture
def app(tmp_path):
    """Aplicação Flask com banco SQLite temporário e carregamento sem prazo."""
    flask_app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///' + str(tmp_path / 'pcp_teste.db'),
        'PCP_CACHE_PATH': str(tmp_path / 'pcp_cache.json'),
        'PCP_TIMEOUT_CARREGAMENTO': None,
        'PCP_SINCRONIZACAO_ASSINCRONA': False,
    })
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()

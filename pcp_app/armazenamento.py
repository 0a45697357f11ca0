# pcp_app/armazenamento.py
"""
Camada de persistência vista pelo controlador.

O controlador só conhece cinco operações: carregar, criar_ordem,
atualizar_ordem, excluir_ordem e inscrever (mais salvar_dados_globais para
usuários, configurações, ramais e logs). ArmazenamentoBanco grava no banco
via Flask-SQLAlchemy; ArmazenamentoHibrido acrescenta o prazo de
carregamento e o cache local usado quando o banco não responde.
"""
import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from .extensions import db
from .models import Ordem, Usuario, LogGlobal, Configuracao
from .erros import ErroPersistencia, CarregamentoExpirado

logger = logging.getLogger(__name__)

CAMPOS_ORDEM = [
    'id', 'numero_or', 'numero_item', 'quantidade', 'lote', 'versao', 'cliente',
    'vendedor', 'item', 'data_entrega', 'criado_em', 'criado_por', 'prioridade',
    'observacao', 'pre_impressao', 'impressao', 'producao', 'instalacao',
    'expedicao', 'arquivada', 'arquivada_em', 'refazimento', 'historico', 'anexos'
]
CAMPOS_USUARIO = ['id', 'email', 'nome', 'role', 'cargo', 'departamento', 'password_hash']
CAMPOS_LOG = ['id', 'usuario_id', 'usuario_nome', 'timestamp', 'tipo_acao', 'info_alvo']


def serialize_ordem(o):
    """Converte um objeto Ordem do SQLAlchemy em um dicionário."""
    dados = {campo: getattr(o, campo) for campo in CAMPOS_ORDEM}
    dados['historico'] = list(o.historico or [])
    dados['anexos'] = list(o.anexos or [])
    dados['arquivada'] = bool(o.arquivada)
    dados['refazimento'] = bool(o.refazimento)
    return dados


def serialize_usuario(u):
    return {campo: getattr(u, campo) for campo in CAMPOS_USUARIO}


def serialize_log(log_entry):
    return {campo: getattr(log_entry, campo) for campo in CAMPOS_LOG}


def snapshot_vazio():
    return {'ordens': [], 'usuarios': [], 'configuracoes': {}, 'ramais': [], 'logs': [], 'offline': False}


class ArmazenamentoBanco:
    """Armazenamento principal: banco SQL da aplicação Flask."""

    def __init__(self, app):
        self.app = app
        self._inscritos = []

    # --- Assinaturas ---

    def inscrever(self, callback):
        self._inscritos.append(callback)

    def _notificar(self, origem):
        for callback in list(self._inscritos):
            try:
                callback(origem)
            except Exception as e:
                logger.error(f"ERRO ao notificar inscrito sobre mudança: {e}")

    # --- Leitura ---

    def carregar(self):
        with self.app.app_context():
            configs = {c.chave: c.valor for c in Configuracao.query.all()}
            return {
                'ordens': [serialize_ordem(o) for o in Ordem.query.all()],
                'usuarios': [serialize_usuario(u) for u in Usuario.query.all()],
                'configuracoes': configs.get('empresa') or {},
                'ramais': configs.get('ramais') or [],
                'logs': [serialize_log(l) for l in LogGlobal.query.order_by(LogGlobal.timestamp).all()],
                'offline': False,
            }

    # --- Escrita ---

    def _gravar(self, descricao, operacao, origem):
        with self.app.app_context():
            try:
                operacao()
                db.session.commit()
            except Exception as e:
                db.session.rollback()
                raise ErroPersistencia(f"ERRO ao {descricao}: {e}") from e
        self._notificar(origem)

    def criar_ordem(self, ordem, origem=None):
        def operacao():
            db.session.add(Ordem(**{campo: ordem.get(campo) for campo in CAMPOS_ORDEM}))
        self._gravar(f"criar ordem {ordem['id']}", operacao, origem)

    def atualizar_ordem(self, ordem, origem=None):
        def operacao():
            registro = db.session.get(Ordem, ordem['id'])
            if registro is None:
                registro = Ordem(id=ordem['id'])
                db.session.add(registro)
            for campo in CAMPOS_ORDEM:
                if campo in ('historico', 'anexos'):
                    setattr(registro, campo, list(ordem.get(campo) or []))
                elif campo != 'id':
                    setattr(registro, campo, ordem.get(campo))
        self._gravar(f"atualizar ordem {ordem['id']}", operacao, origem)

    def excluir_ordem(self, ordem_id, origem=None):
        def operacao():
            registro = db.session.get(Ordem, ordem_id)
            if registro is not None:
                db.session.delete(registro)
        self._gravar(f"excluir ordem {ordem_id}", operacao, origem)

    def _salvar_configuracao(self, chave, valor):
        registro = Configuracao.query.filter_by(chave=chave).first()
        if not registro:
            registro = Configuracao(chave=chave)
            db.session.add(registro)
        registro.valor = valor

    def salvar_dados_globais(self, usuarios=None, configuracoes=None, logs=None, ramais=None, origem=None):
        def operacao():
            if usuarios is not None:
                ids = {u['id'] for u in usuarios}
                for registro in Usuario.query.all():
                    if registro.id not in ids:
                        db.session.delete(registro)
                for dados in usuarios:
                    registro = db.session.get(Usuario, dados['id'])
                    if registro is None:
                        registro = Usuario(id=dados['id'])
                        db.session.add(registro)
                    for campo in CAMPOS_USUARIO:
                        if campo != 'id':
                            setattr(registro, campo, dados.get(campo))
            if configuracoes is not None:
                self._salvar_configuracao('empresa', dict(configuracoes))
            if ramais is not None:
                self._salvar_configuracao('ramais', list(ramais))
            if logs is not None:
                # Log global só recebe inclusões
                existentes = {l.id for l in LogGlobal.query.with_entities(LogGlobal.id)}
                for dados in logs:
                    if dados['id'] not in existentes:
                        db.session.add(LogGlobal(**{campo: dados.get(campo) for campo in CAMPOS_LOG}))
        self._gravar("salvar dados globais", operacao, origem)


class CacheLocal:
    """Cópia em disco (JSON) do último carregamento bem-sucedido."""

    def __init__(self, caminho):
        self.caminho = caminho

    def ler(self):
        if not self.caminho or not os.path.exists(self.caminho):
            return snapshot_vazio()
        try:
            with open(self.caminho, 'r', encoding='utf-8') as arquivo:
                dados = json.load(arquivo)
        except (OSError, ValueError) as e:
            logger.warning(f"AVISO: cache local ilegível em {self.caminho}: {e}")
            return snapshot_vazio()
        snapshot = snapshot_vazio()
        snapshot.update(dados)
        return snapshot

    def gravar(self, snapshot):
        if not self.caminho:
            return
        try:
            with open(self.caminho, 'w', encoding='utf-8') as arquivo:
                json.dump(snapshot, arquivo, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"AVISO: não foi possível gravar o cache local em {self.caminho}: {e}")


class ArmazenamentoHibrido:
    """
    Carrega do armazenamento remoto dentro de um prazo. Se o prazo estourar
    ou o remoto falhar, devolve o cache local com offline=True.
    """

    def __init__(self, remoto, cache, timeout=5.0):
        self.remoto = remoto
        self.cache = cache
        self.timeout = timeout

    def _carregar_remoto(self):
        if self.timeout is None:
            return self.remoto.carregar()
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            futuro = executor.submit(self.remoto.carregar)
            try:
                return futuro.result(timeout=self.timeout)
            except FuturesTimeout:
                raise CarregamentoExpirado(f"O carregamento excedeu {self.timeout}s.")
        finally:
            executor.shutdown(wait=False)

    def carregar(self):
        try:
            snapshot = self._carregar_remoto()
        except Exception as e:
            logger.warning(f"AVISO: servidor indisponível ({e}). Usando cache local.")
            snapshot = self.cache.ler()
            snapshot['offline'] = True
            return snapshot
        snapshot['offline'] = False
        self.cache.gravar(snapshot)
        return snapshot

    def inscrever(self, callback):
        self.remoto.inscrever(callback)

    def criar_ordem(self, ordem, origem=None):
        self.remoto.criar_ordem(ordem, origem=origem)

    def atualizar_ordem(self, ordem, origem=None):
        self.remoto.atualizar_ordem(ordem, origem=origem)

    def excluir_ordem(self, ordem_id, origem=None):
        self.remoto.excluir_ordem(ordem_id, origem=origem)

    def salvar_dados_globais(self, origem=None, **dados):
        self.remoto.salvar_dados_globais(origem=origem, **dados)

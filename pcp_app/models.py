# pcp_app/models.py
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.types import JSON
from .extensions import db
from .etapas import PENDENTE

# --- MODELOS PRINCIPAIS ---

class Ordem(db.Model):
    """Um item de produção. Vários itens compartilham o mesmo número de O.R."""
    id = db.Column(db.String(64), primary_key=True)
    # 'or' é palavra reservada no Python; a coluna mantém o nome original
    numero_or = db.Column('or', db.String(50), index=True, nullable=False)
    numero_item = db.Column(db.String(50))
    quantidade = db.Column(db.String(20))
    lote = db.Column(db.String(20))
    versao = db.Column(db.String(20))
    cliente = db.Column(db.String(200))
    vendedor = db.Column(db.String(100))
    item = db.Column(db.Text)
    data_entrega = db.Column(db.String(10), index=True)
    criado_em = db.Column(db.String(100))
    criado_por = db.Column(db.String(150))
    prioridade = db.Column(db.String(20))
    observacao = db.Column(db.Text)

    pre_impressao = db.Column(db.String(30), default=PENDENTE)
    impressao = db.Column(db.String(30), default=PENDENTE)
    producao = db.Column(db.String(30), default=PENDENTE)
    instalacao = db.Column(db.String(30), default=PENDENTE)
    expedicao = db.Column(db.String(30), default=PENDENTE)

    arquivada = db.Column(db.Boolean, default=False, nullable=False)
    arquivada_em = db.Column(db.String(100))
    refazimento = db.Column(db.Boolean, default=False)
    historico = db.Column(MutableList.as_mutable(JSON), default=list)
    anexos = db.Column(MutableList.as_mutable(JSON), default=list)

# --- MODELOS DE SUPORTE ---

class Usuario(db.Model):
    id = db.Column(db.String(100), primary_key=True)
    email = db.Column(db.String(150), unique=True, nullable=False)  # login
    nome = db.Column(db.String(150))
    role = db.Column(db.String(50))
    cargo = db.Column(db.String(100))
    departamento = db.Column(db.String(50))
    password_hash = db.Column(db.String(256))

class LogGlobal(db.Model):
    """Auditoria de exclusões que não ficam registradas no histórico de nenhuma ordem."""
    id = db.Column(db.String(64), primary_key=True)
    usuario_id = db.Column(db.String(100))
    usuario_nome = db.Column(db.String(150))
    timestamp = db.Column(db.String(100), nullable=False)
    tipo_acao = db.Column(db.String(50), nullable=False)  # 'DELETE_ORDER', 'DELETE_USER'
    info_alvo = db.Column(db.String(255))

class Configuracao(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    chave = db.Column(db.String(100), unique=True, nullable=False)  # ex: 'empresa', 'ramais'
    valor = db.Column(db.JSON)

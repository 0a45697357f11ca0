# pcp_app/etapas.py
from .erros import ErroValidacao

# --- STATUS ---
PENDENTE = 'Pendente'
EM_PRODUCAO = 'Em Produção'
CONCLUIDO = 'Concluído'
# Valores legados: aceitos na leitura, nunca produzidos pela lógica.
ATRASADO = 'Atrasado'
EXCLUIDO = 'Excluído'

STATUS_VALIDOS = [PENDENTE, EM_PRODUCAO, CONCLUIDO]
STATUS_LEGADOS = [ATRASADO, EXCLUIDO]

# Marcador de histórico para edição de cabeçalho (não é um status de etapa)
DADOS_EDITADOS = 'Dados Editados'

# --- ETAPAS DE PRODUÇÃO ---
# A ordem define as colunas do Kanban e a "etapa atual" de cada item.
ETAPAS = ('pre_impressao', 'impressao', 'producao', 'instalacao', 'expedicao')
GERAL = 'Geral'

ROTULOS_ETAPAS = {
    'pre_impressao': 'Design & Pré-Imp',
    'impressao': 'Impressão Digital',
    'producao': 'Acabamento & Serralheria',
    'instalacao': 'Equipe de Campo',
    'expedicao': 'Logística & Expedição',
    GERAL: 'Geral',
}

ABREVIACOES_ETAPAS = {
    'pre_impressao': 'DSG',
    'impressao': 'IMP',
    'producao': 'ACB',
    'instalacao': 'INS',
    'expedicao': 'LOG',
    GERAL: 'GER',
}

# --- KANBAN ---
ETAPA_FINALIZADA = 'done'
COLUNAS_KANBAN = [
    ('design', 'pre_impressao'),
    ('print', 'impressao'),
    ('prod', 'producao'),
    ('install', 'instalacao'),
    ('shipping', 'expedicao'),
    (ETAPA_FINALIZADA, None),
]

# --- PAPÉIS ---
ROLE_ADMIN = 'Admin'
ROLE_OPERADOR = 'Operador'
ROLES_VALIDAS = [ROLE_ADMIN, ROLE_OPERADOR]
DEPARTAMENTOS_VALIDOS = list(ETAPAS) + [GERAL]

PRIORIDADE_ALTA = 'Alta'
PRIORIDADES = ['Alta', 'Média', 'Baixa']


def validar_etapa(etapa):
    if etapa not in ETAPAS:
        raise ErroValidacao(f"Etapa inválida: '{etapa}'.")
    return etapa


def pode_alterar_etapa(usuario, etapa):
    """Admin, setor Geral ou o próprio setor da etapa podem alterá-la."""
    if not usuario:
        return False
    return (
        usuario.get('role') == ROLE_ADMIN
        or usuario.get('departamento') == GERAL
        or usuario.get('departamento') == etapa
    )

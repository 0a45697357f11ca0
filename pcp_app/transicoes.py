# pcp_app/transicoes.py
"""
Motor de transição de etapas.

Todas as funções são puras: recebem o dicionário da ordem e devolvem uma
cópia alterada, sem tocar no original.
"""
import uuid
from .etapas import (
    ETAPAS, GERAL, PENDENTE, EM_PRODUCAO, CONCLUIDO, DADOS_EDITADOS,
    ROTULOS_ETAPAS, pode_alterar_etapa, validar_etapa
)
from .erros import PermissaoNegada, TransicaoIndisponivel, ErroValidacao
from .utils import agora_iso

MODO_CICLO = 'ciclo'
MODO_PROCESSO = 'processo'

# Campos que o formulário de edição pode alterar em um item.
CAMPOS_EDITAVEIS = [
    'numero_or', 'numero_item', 'quantidade', 'lote', 'versao', 'cliente',
    'vendedor', 'item', 'data_entrega', 'prioridade', 'observacao',
    'anexos', 'refazimento'
]


def proximo_status_ciclo(status):
    """Clique na tabela: Pendente -> Em Produção -> Concluído -> Pendente."""
    if status == EM_PRODUCAO:
        return CONCLUIDO
    if status == CONCLUIDO:
        return PENDENTE
    return EM_PRODUCAO


def proximo_status_processo(status):
    """Botão do Kanban: receber (Pendente -> Em Produção) e avançar (Em Produção -> Concluído)."""
    if status == PENDENTE:
        return EM_PRODUCAO
    if status == EM_PRODUCAO:
        return CONCLUIDO
    return None


def criar_entrada_historico(usuario, status, setor, agora=None):
    return {
        'usuario_id': (usuario or {}).get('id', 'sys'),
        'usuario_nome': (usuario or {}).get('nome', 'Sistema'),
        'timestamp': agora or agora_iso(),
        'status': status,
        'setor': setor,
    }


def aplicar_transicao(ordem, etapa, usuario, modo=MODO_CICLO, agora=None):
    """
    Calcula o próximo status da etapa e devolve (ordem_atualizada, entrada_historico).

    Levanta PermissaoNegada se o usuário não pertence ao setor da etapa e
    TransicaoIndisponivel se o modo 'processo' não tem ação para o status atual.
    Concluir a expedição arquiva a ordem automaticamente.
    """
    validar_etapa(etapa)
    if not pode_alterar_etapa(usuario, etapa):
        raise PermissaoNegada(f"Acesso restrito ao setor {ROTULOS_ETAPAS[etapa]}.")

    status_atual = ordem.get(etapa, PENDENTE)
    if modo == MODO_CICLO:
        proximo = proximo_status_ciclo(status_atual)
    elif modo == MODO_PROCESSO:
        proximo = proximo_status_processo(status_atual)
        if proximo is None:
            raise TransicaoIndisponivel(f"A etapa {ROTULOS_ETAPAS[etapa]} já está concluída.")
    else:
        raise ErroValidacao(f"Modo de transição inválido: '{modo}'.")

    agora = agora or agora_iso()
    entrada = criar_entrada_historico(usuario, proximo, etapa, agora)

    atualizada = dict(ordem)
    atualizada[etapa] = proximo
    atualizada['historico'] = list(ordem.get('historico') or []) + [entrada]

    if etapa == 'expedicao' and proximo == CONCLUIDO:
        atualizada['arquivada'] = True
        atualizada['arquivada_em'] = agora

    return atualizada, entrada


def arquivar(ordem, agora=None):
    atualizada = dict(ordem)
    atualizada['arquivada'] = True
    atualizada['arquivada_em'] = agora or agora_iso()
    return atualizada


def reativar(ordem):
    """Reativa uma ordem arquivada; a expedição volta para Pendente."""
    atualizada = dict(ordem)
    atualizada['arquivada'] = False
    atualizada['arquivada_em'] = None
    atualizada['expedicao'] = PENDENTE
    return atualizada


def aplicar_edicao(ordem, dados, usuario, agora=None):
    """Mescla os campos editados e registra a entrada sintética 'Dados Editados'."""
    atualizada = dict(ordem)
    for campo in CAMPOS_EDITAVEIS:
        if campo in dados:
            atualizada[campo] = dados[campo]
    entrada = criar_entrada_historico(usuario, DADOS_EDITADOS, GERAL, agora)
    atualizada['historico'] = list(ordem.get('historico') or []) + [entrada]
    return atualizada


def nova_ordem(dados, usuario=None, agora=None):
    """Cria um item novo com todas as etapas pendentes."""
    agora = agora or agora_iso()
    ordem = {
        'id': uuid.uuid4().hex,
        'numero_or': '',
        'numero_item': None,
        'quantidade': '1',
        'lote': None,
        'versao': None,
        'cliente': '',
        'vendedor': '',
        'item': '',
        'data_entrega': agora[:10],
        'prioridade': 'Média',
        'observacao': '',
        'anexos': [],
        'refazimento': False,
    }
    for campo in CAMPOS_EDITAVEIS:
        if campo in dados:
            ordem[campo] = dados[campo]
    for etapa in ETAPAS:
        ordem[etapa] = PENDENTE
    ordem.update({
        'criado_em': agora,
        'criado_por': (usuario or {}).get('nome'),
        'arquivada': False,
        'arquivada_em': None,
        'historico': [],
    })
    return ordem

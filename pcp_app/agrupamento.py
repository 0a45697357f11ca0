# pcp_app/agrupamento.py
"""
Motor de agrupamento usado pela tabela, pelo Kanban e pelo calendário.

Os itens são agrupados por número de O.R; cada grupo recebe uma data âncora
e é distribuído em semanas ISO e dias. Nenhuma função altera a lista recebida.
"""
import re
import unicodedata
from datetime import date, timedelta
from .etapas import CONCLUIDO, COLUNAS_KANBAN, ETAPA_FINALIZADA, PRIORIDADE_ALTA

DIAS_SEMANA = ['SEGUNDA-FEIRA', 'TERÇA-FEIRA', 'QUARTA-FEIRA', 'QUINTA-FEIRA',
               'SEXTA-FEIRA', 'SÁBADO', 'DOMINGO']
MESES_ABREVIADOS = ['JAN', 'FEV', 'MAR', 'ABR', 'MAI', 'JUN',
                    'JUL', 'AGO', 'SET', 'OUT', 'NOV', 'DEZ']

_PARTES_NUMERICAS = re.compile(r'(\d+)')


def chave_natural(texto):
    """Chave de ordenação que compara números pelo valor ('2' < '10') e ignora caixa e acentos."""
    texto = unicodedata.normalize('NFKD', str(texto or ''))
    texto = ''.join(c for c in texto if not unicodedata.combining(c)).casefold()
    chave = []
    for parte in _PARTES_NUMERICAS.split(texto):
        if not parte:
            continue
        if parte.isdigit():
            chave.append((0, int(parte), ''))
        else:
            chave.append((1, 0, parte))
    return tuple(chave)


def _para_data(data_str):
    return date.fromisoformat(data_str)


def semana_iso(data):
    """(ano ISO, número da semana) pela regra da quinta-feira mais próxima."""
    if isinstance(data, str):
        data = _para_data(data)
    ano, semana, _ = data.isocalendar()
    return ano, semana


def agrupar_por_or(ordens):
    """Agrupa itens pelo número de O.R, mantendo a ordem em que cada O.R aparece."""
    grupos = {}
    for ordem in ordens:
        grupos.setdefault(ordem.get('numero_or'), []).append(ordem)
    return grupos


def data_ancora(itens):
    """
    Menor data de entrega entre os itens ativos; se todos estiverem
    arquivados, a maior data entre todos.
    """
    ativos = [i['data_entrega'] for i in itens if not i.get('arquivada')]
    if ativos:
        return min(ativos)
    return max(i['data_entrega'] for i in itens)


def ordenar_itens(itens):
    # sorted é estável: empates mantêm a ordem original
    return sorted(itens, key=lambda i: chave_natural(i.get('numero_item')))


def montar_grupos(ordens, direcao='asc'):
    """Lista de grupos {numero_or, data_ancora, itens} ordenada pela âncora e, no empate, O.R decrescente."""
    grupos = [
        {'numero_or': numero_or, 'data_ancora': data_ancora(itens), 'itens': ordenar_itens(itens)}
        for numero_or, itens in agrupar_por_or(ordens).items()
    ]
    grupos.sort(key=lambda g: str(g['numero_or']), reverse=True)
    grupos.sort(key=lambda g: g['data_ancora'], reverse=(direcao == 'desc'))
    return grupos


def _titulo_semana(data, semana):
    segunda = data - timedelta(days=data.weekday())
    sexta = segunda + timedelta(days=4)
    intervalo = f"{segunda.strftime('%d/%m')} A {sexta.strftime('%d/%m')}"
    return f"{intervalo} - SEMANA {semana:02d}", segunda


def nome_dia(data):
    if isinstance(data, str):
        data = _para_data(data)
    return f"{DIAS_SEMANA[data.weekday()]} - {data.strftime('%d/%m')}"


def agrupar_para_exibicao(ordens, direcao='asc', hoje=None):
    """
    Agrupa as ordens em semanas -> dias -> grupos de O.R para a tabela.

    As semanas saem sempre em ordem cronológica; a direção só afeta a
    ordem dos grupos dentro de cada dia.
    """
    hoje = _para_data(hoje) if isinstance(hoje, str) else (hoje or date.today())
    semana_atual = semana_iso(hoje)

    semanas = {}
    for grupo in montar_grupos(ordens, direcao):
        data = _para_data(grupo['data_ancora'])
        ano, semana = semana_iso(data)
        semana_id = f"{ano}-W{semana}"

        if semana_id not in semanas:
            titulo, segunda = _titulo_semana(data, semana)
            semanas[semana_id] = {
                'id': semana_id,
                'titulo': titulo,
                'subtitulo': f"{MESES_ABREVIADOS[data.month - 1]} {data.year}",
                'atual': (ano, semana) == semana_atual,
                'inicio': segunda.isoformat(),
                'total_itens': 0,
                'dias': {},
            }
        semana_dict = semanas[semana_id]
        dia = semana_dict['dias'].setdefault(grupo['data_ancora'], {
            'data': grupo['data_ancora'],
            'nome_dia': nome_dia(data),
            'grupos': [],
        })
        dia['grupos'].append(grupo)
        semana_dict['total_itens'] += len(grupo['itens'])

    resultado = []
    for semana_dict in sorted(semanas.values(), key=lambda s: s['inicio']):
        dias = sorted(semana_dict['dias'].values(), key=lambda d: d['data'])
        resultado.append(dict(semana_dict, dias=dias))
    return resultado


def classificar_etapa_kanban(ordem):
    """Coluna do Kanban: a primeira etapa ainda não concluída, ou 'done'."""
    if ordem.get('arquivada'):
        return ETAPA_FINALIZADA
    for coluna, etapa in COLUNAS_KANBAN:
        if etapa and ordem.get(etapa) != CONCLUIDO:
            return coluna
    return ETAPA_FINALIZADA


def agrupar_kanban(ordens, ocultar_finalizadas=True):
    """
    Distribui os itens nas colunas do Kanban e agrupa por O.R dentro de cada coluna.

    Itens de uma mesma O.R podem cair em colunas diferentes. Dentro da coluna,
    O.R com prioridade Alta vêm primeiro e depois a data de entrega mais próxima.
    """
    colunas = {coluna: {} for coluna, _ in COLUNAS_KANBAN}
    for ordem in ordens:
        # Arquivados que passaram pela expedição ficam fora do quadro
        if ocultar_finalizadas and ordem.get('arquivada') and ordem.get('expedicao') == CONCLUIDO:
            continue
        coluna = classificar_etapa_kanban(ordem)
        colunas[coluna].setdefault(ordem.get('numero_or'), []).append(ordem)

    etapa_da_coluna = dict(COLUNAS_KANBAN)
    resultado = {}
    for coluna, grupos in colunas.items():
        resumo = []
        for numero_or, itens in grupos.items():
            itens = ordenar_itens(itens)
            # Última movimentação da etapa da coluna; em 'done', a última de todas
            entradas = [e for e in (ultima_atualizacao(i, etapa_da_coluna[coluna]) for i in itens) if e]
            resumo.append({
                'numero_or': numero_or,
                'cliente': itens[0].get('cliente'),
                'itens': itens,
                'ultima_atualizacao': max(entradas, key=lambda h: h.get('timestamp') or '') if entradas else None,
            })
        resumo.sort(key=lambda g: (
            not any(i.get('prioridade') == PRIORIDADE_ALTA for i in g['itens']),
            min(i['data_entrega'] for i in g['itens']),
        ))
        resultado[coluna] = resumo
    return resultado


def ultima_atualizacao(ordem, etapa=None):
    """Entrada de histórico mais recente, de uma etapa específica ou geral."""
    historico = ordem.get('historico') or []
    if etapa:
        historico = [h for h in historico if h.get('setor') == etapa]
    if not historico:
        return None
    return max(historico, key=lambda h: h.get('timestamp') or '')


def historico_ordenado(ordem, decrescente=True):
    return sorted(ordem.get('historico') or [], key=lambda h: h.get('timestamp') or '', reverse=decrescente)


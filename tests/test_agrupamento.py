import copy

from pcp_app.agrupamento import (
    chave_natural, data_ancora, semana_iso, montar_grupos, agrupar_para_exibicao,
    classificar_etapa_kanban, agrupar_kanban, historico_ordenado, ultima_atualizacao
)
from pcp_app.etapas import CONCLUIDO, EM_PRODUCAO


def test_ordenacao_natural():
    refs = ['10', '2', '01B', '01a', 'Item 3']
    assert sorted(refs, key=chave_natural) == ['01a', '01B', '2', '10', 'Item 3']


def test_ancora_usa_menor_data_ativa(fazer_ordem):
    itens = [
        fazer_ordem(data_entrega='2024-05-01', arquivada=True),
        fazer_ordem(data_entrega='2024-05-03'),
        fazer_ordem(data_entrega='2024-05-02'),
    ]
    assert data_ancora(itens) == '2024-05-02'


def test_ancora_todas_arquivadas_usa_maior_data(fazer_ordem):
    itens = [
        fazer_ordem(data_entrega='2024-05-01', arquivada=True),
        fazer_ordem(data_entrega='2024-05-03', arquivada=True),
    ]
    assert data_ancora(itens) == '2024-05-03'


def test_semana_iso_na_virada_do_ano():
    # 30/12/2024 já pertence à semana 1 de 2025
    assert semana_iso('2024-12-30') == (2025, 1)
    assert semana_iso('2021-01-03') == (2020, 53)


def test_empate_de_ancora_ordena_or_decrescente(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='100', data_entrega='2024-05-06'),
        fazer_ordem(numero_or='300', data_entrega='2024-05-06'),
        fazer_ordem(numero_or='200', data_entrega='2024-05-06'),
        fazer_ordem(numero_or='050', data_entrega='2024-05-02'),
    ]
    asc = [g['numero_or'] for g in montar_grupos(ordens, 'asc')]
    desc = [g['numero_or'] for g in montar_grupos(ordens, 'desc')]
    assert asc == ['050', '300', '200', '100']
    assert desc == ['300', '200', '100', '050']


def test_itens_do_grupo_em_ordem_natural(fazer_ordem):
    ordens = [fazer_ordem(numero_item=ref) for ref in ['10', '2', '1']]
    grupo = montar_grupos(ordens)[0]
    assert [i['numero_item'] for i in grupo['itens']] == ['1', '2', '10']


def test_exibicao_semanas_e_dias(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='A', data_entrega='2024-05-06'),
        fazer_ordem(numero_or='B', data_entrega='2024-05-03'),
        fazer_ordem(numero_or='C', data_entrega='2024-05-03'),
    ]
    semanas = agrupar_para_exibicao(ordens, 'asc', hoje='2024-05-03')

    assert [s['id'] for s in semanas] == ['2024-W18', '2024-W19']
    atual = semanas[0]
    assert atual['atual'] is True
    assert atual['titulo'] == '29/04 A 03/05 - SEMANA 18'
    assert atual['subtitulo'] == 'MAI 2024'
    assert atual['total_itens'] == 2
    assert atual['dias'][0]['nome_dia'] == 'SEXTA-FEIRA - 03/05'
    assert [g['numero_or'] for g in atual['dias'][0]['grupos']] == ['C', 'B']
    assert semanas[1]['atual'] is False


def test_exibicao_e_idempotente_e_nao_muta(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='1', data_entrega='2024-05-06', numero_item='2'),
        fazer_ordem(numero_or='1', data_entrega='2024-05-02', numero_item='1', arquivada=True),
        fazer_ordem(numero_or='2', data_entrega='2024-06-01'),
    ]
    antes = copy.deepcopy(ordens)
    primeira = agrupar_para_exibicao(ordens, 'desc', hoje='2024-05-03')
    segunda = agrupar_para_exibicao(ordens, 'desc', hoje='2024-05-03')
    assert primeira == segunda
    assert ordens == antes


def test_classificacao_kanban_primeira_etapa_pendente(fazer_ordem):
    ordem = fazer_ordem(pre_impressao=CONCLUIDO, impressao=CONCLUIDO)
    assert classificar_etapa_kanban(ordem) == 'prod'
    assert classificar_etapa_kanban(fazer_ordem()) == 'design'
    assert classificar_etapa_kanban(fazer_ordem(arquivada=True)) == 'done'


def test_kanban_prioridade_alta_primeiro(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='1', data_entrega='2024-05-01'),
        fazer_ordem(numero_or='2', data_entrega='2024-05-10', prioridade='Alta'),
        fazer_ordem(numero_or='3', data_entrega='2024-04-30'),
        # Arquivada pela expedição: fora do quadro
        fazer_ordem(numero_or='4', expedicao=CONCLUIDO, arquivada=True),
    ]
    quadro = agrupar_kanban(ordens)
    assert set(quadro) == {'design', 'print', 'prod', 'install', 'shipping', 'done'}
    assert [g['numero_or'] for g in quadro['design']] == ['2', '3', '1']
    assert quadro['done'] == []


def test_kanban_mesma_or_em_colunas_diferentes(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='9', numero_item='1'),
        fazer_ordem(numero_or='9', numero_item='2', pre_impressao=CONCLUIDO, impressao=EM_PRODUCAO),
    ]
    quadro = agrupar_kanban(ordens)
    assert quadro['design'][0]['numero_or'] == '9'
    assert quadro['print'][0]['numero_or'] == '9'


def test_historico_ordenado(fazer_ordem):
    historico = [
        {'timestamp': '2024-05-01T08:00', 'setor': 'impressao', 'status': EM_PRODUCAO},
        {'timestamp': '2024-05-02T08:00', 'setor': 'pre_impressao', 'status': CONCLUIDO},
        {'timestamp': '2024-05-03T08:00', 'setor': 'impressao', 'status': CONCLUIDO},
    ]
    ordem = fazer_ordem(historico=historico)
    assert [h['timestamp'][:10] for h in historico_ordenado(ordem)] == ['2024-05-03', '2024-05-02', '2024-05-01']
    assert ultima_atualizacao(ordem, 'pre_impressao')['status'] == CONCLUIDO
    assert ultima_atualizacao(fazer_ordem()) is None


def test_semanas_sempre_cronologicas_mesmo_em_ordem_decrescente(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='500', data_entrega='2024-12-30'),
        fazer_ordem(numero_or='100', data_entrega='2024-05-03'),
        fazer_ordem(numero_or='400', data_entrega='2024-05-06'),
        fazer_ordem(numero_or='300', data_entrega='2024-05-03'),
    ]
    for direcao in ('asc', 'desc'):
        semanas = agrupar_para_exibicao(ordens, direcao, hoje='2024-05-03')
        assert [s['id'] for s in semanas] == ['2024-W18', '2024-W19', '2025-W1']

    semanas = agrupar_para_exibicao(ordens, 'desc', hoje='2024-05-03')
    # Mesma âncora: O.R decrescente
    assert [g['numero_or'] for g in semanas[0]['dias'][0]['grupos']] == ['300', '100']
    assert semanas[2]['titulo'] == '30/12 A 03/01 - SEMANA 01'


def test_kanban_mostra_ultima_movimentacao_da_etapa(fazer_ordem):
    historico = [
        {'timestamp': '2024-05-01T08:00', 'setor': 'pre_impressao', 'status': CONCLUIDO, 'usuario_nome': 'CARLOS'},
        {'timestamp': '2024-05-02T09:00', 'setor': 'impressao', 'status': EM_PRODUCAO, 'usuario_nome': 'JOÃO'},
    ]
    ordens = [
        fazer_ordem(numero_or='7', numero_item='1', pre_impressao=CONCLUIDO, impressao=EM_PRODUCAO, historico=historico),
        fazer_ordem(numero_or='7', numero_item='2', pre_impressao=CONCLUIDO),
        fazer_ordem(numero_or='8'),
    ]
    quadro = agrupar_kanban(ordens)
    assert quadro['print'][0]['ultima_atualizacao']['usuario_nome'] == 'JOÃO'
    assert quadro['design'][0]['ultima_atualizacao'] is None

import pytest

from pcp_app.erros import ErroValidacao
from pcp_app.etapas import EM_PRODUCAO
from pcp_app.filtros import (
    filtrar_por_busca, filtrar_por_aba, calcular_estatisticas, aplicar_filtros,
    alternar_filtro_setor, filtrar_calendario, agrupar_por_dia, resumo_anual, semana_do_calendario, BuscaAdiada,
    ABA_CONCLUIDAS, ABA_KANBAN, FILTRO_PRODUCAO, FILTRO_ATRASADAS, CALENDARIO_OPERACIONAIS
)

HOJE = '2024-05-03'


def test_busca_por_numero_da_or(fazer_ordem):
    ordens = [
        fazer_ordem(numero_or='112050'),
        fazer_ordem(numero_or='A112050-B'),
        fazer_ordem(numero_or='112051'),
    ]
    encontradas = filtrar_por_busca(ordens, '112050')
    assert [o['numero_or'] for o in encontradas] == ['112050', 'A112050-B']


def test_busca_ignora_caixa_e_aceita_data_brasileira(fazer_ordem):
    ordens = [fazer_ordem(cliente='Padaria Pão Quente', data_entrega='2024-05-10'), fazer_ordem(cliente='OUTRO')]
    assert len(filtrar_por_busca(ordens, 'padaria')) == 1
    assert len(filtrar_por_busca(ordens, '10/05')) == 1
    assert len(filtrar_por_busca(ordens, '   ')) == 2


def test_abas(fazer_ordem):
    ativa, arquivada = fazer_ordem(), fazer_ordem(arquivada=True)
    assert filtrar_por_aba([ativa, arquivada], ABA_CONCLUIDAS) == [arquivada]
    assert filtrar_por_aba([ativa, arquivada], ABA_KANBAN) == [ativa, arquivada]
    with pytest.raises(ErroValidacao):
        filtrar_por_aba([ativa], 'LIXEIRA')


def test_contador_de_atrasadas(fazer_ordem):
    ordens = [
        fazer_ordem(data_entrega='2024-05-02'),
        fazer_ordem(data_entrega='2024-05-03'),
        fazer_ordem(data_entrega='2024-05-04'),
        fazer_ordem(data_entrega='2024-04-01', arquivada=True),
        fazer_ordem(data_entrega='2024-05-04', impressao=EM_PRODUCAO),
    ]
    assert calcular_estatisticas(ordens, HOJE) == {'total': 4, 'em_andamento': 1, 'atrasadas': 1}


def test_filtros_rapidos_e_setor(fazer_ordem):
    atrasada = fazer_ordem(data_entrega='2024-05-01')
    produzindo = fazer_ordem(producao=EM_PRODUCAO, data_entrega='2024-05-09')
    parada = fazer_ordem(data_entrega='2024-05-09')
    ordens = [atrasada, produzindo, parada]

    assert aplicar_filtros(ordens, filtro=FILTRO_ATRASADAS, hoje=HOJE) == [atrasada]
    assert aplicar_filtros(ordens, filtro=FILTRO_PRODUCAO, hoje=HOJE) == [produzindo]
    assert aplicar_filtros(ordens, setor='producao', hoje=HOJE) == [produzindo]
    assert aplicar_filtros(ordens, setor='impressao', hoje=HOJE) == []
    with pytest.raises(ErroValidacao):
        aplicar_filtros(ordens, filtro='URGENTES', hoje=HOJE)


def test_alternar_filtro_setor():
    assert alternar_filtro_setor(None, 'impressao') == 'impressao'
    assert alternar_filtro_setor('impressao', 'impressao') is None
    assert alternar_filtro_setor('impressao', 'producao') == 'producao'
    assert alternar_filtro_setor('impressao', None) is None
    with pytest.raises(ErroValidacao):
        alternar_filtro_setor(None, 'pintura')


def test_busca_adiada_vale_o_ultimo_termo():
    agora = [0.0]
    busca = BuscaAdiada(relogio=lambda: agora[0])
    busca.digitar('11')
    agora[0] = 0.1
    busca.digitar('112')
    assert busca.termo() == ''
    agora[0] = 0.5
    assert busca.termo() == '112'


def test_calendario_do_mes(fazer_ordem):
    ordens = [
        fazer_ordem(data_entrega='2024-05-10'),
        fazer_ordem(data_entrega='2024-05-02', arquivada=True),
        fazer_ordem(data_entrega='2024-06-01'),
    ]
    dias = agrupar_por_dia(filtrar_calendario(ordens, CALENDARIO_OPERACIONAIS), 2024, 5)
    assert list(dias) == ['2024-05-10']

    resumo = resumo_anual(ordens, 2024)
    assert resumo[4] == {'mes': 5, 'total': 2, 'ativas': 1, 'arquivadas': 1}
    assert resumo[5]['total'] == 1
    with pytest.raises(ErroValidacao):
        filtrar_calendario(ordens, 'SEMANA')


def test_semana_do_calendario_comeca_no_domingo(fazer_ordem):
    ordens = [
        fazer_ordem(id='a', data_entrega='2024-04-28'),
        fazer_ordem(id='b', data_entrega='2024-05-03'),
        fazer_ordem(id='c', data_entrega='2024-05-05'),
    ]
    semana = semana_do_calendario(ordens, HOJE)
    assert [d['data'] for d in semana] == [
        '2024-04-28', '2024-04-29', '2024-04-30', '2024-05-01', '2024-05-02', '2024-05-03', '2024-05-04'
    ]
    assert [o['id'] for o in semana[0]['ordens']] == ['a']
    assert [o['id'] for o in semana[5]['ordens']] == ['b']

    # Um domingo abre a própria semana
    assert semana_do_calendario(ordens, '2024-05-05')[0]['data'] == '2024-05-05'

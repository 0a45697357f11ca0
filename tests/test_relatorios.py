import pytest

from pcp_app.erros import ErroValidacao
from pcp_app.etapas import CONCLUIDO, EM_PRODUCAO
from pcp_app.relatorios import relatorio_periodo, itens_para_limpeza, formatar_duracao


def _entrada(setor, status, timestamp, usuario_nome):
    return {'setor': setor, 'status': status, 'timestamp': timestamp, 'usuario_nome': usuario_nome}


@pytest.fixture
def ordens_do_mes(fazer_ordem):
    return [
        fazer_ordem(
            id='a', vendedor='ANA', cliente='PADARIA',
            criado_em='2024-05-02T08:00:00-03:00', arquivada=True, arquivada_em='2024-05-04T08:00:00-03:00',
            historico=[
                _entrada('pre_impressao', EM_PRODUCAO, '2024-05-02T08:00:00-03:00', 'CARLOS'),
                _entrada('pre_impressao', CONCLUIDO, '2024-05-02T09:30:00-03:00', 'CARLOS'),
                _entrada('impressao', CONCLUIDO, '2024-05-02T11:00:00-03:00', 'JOÃO'),
            ],
        ),
        fazer_ordem(
            id='b', vendedor='ANA', cliente='PADARIA', refazimento=True, pre_impressao=CONCLUIDO,
            historico=[
                _entrada('pre_impressao', EM_PRODUCAO, '2024-05-03T08:00:00-03:00', 'MARIA'),
                _entrada('pre_impressao', CONCLUIDO, '2024-05-03T08:30:00-03:00', 'MARIA'),
            ],
        ),
        fazer_ordem(id='c', vendedor='', cliente='MERCADO'),
        # Fora do período ou sem data de criação
        fazer_ordem(id='d', criado_em='2024-04-20T08:00:00-03:00'),
        fazer_ordem(id='e', criado_em=None),
    ]


def test_totais_do_periodo(ordens_do_mes):
    relatorio = relatorio_periodo(ordens_do_mes, '2024-05-01', '2024-05-31')

    assert relatorio['total'] == 3
    assert relatorio['ativas'] == 2
    assert relatorio['arquivadas'] == 1
    assert relatorio['refazimentos'] == 1
    assert relatorio['taxa_refazimento'] == 33.3
    assert relatorio['lead_time_medio_dias'] == 2.0


def test_vendedores_e_clientes(ordens_do_mes):
    relatorio = relatorio_periodo(ordens_do_mes, '2024-05-01', '2024-05-31')

    assert relatorio['vendedores'] == [
        {'nome': 'ANA', 'total': 2, 'ativas': 1, 'refazimentos': 1},
        {'nome': 'N/A', 'total': 1, 'ativas': 1, 'refazimentos': 0},
    ]
    assert relatorio['clientes'] == [{'nome': 'PADARIA', 'total': 2}, {'nome': 'MERCADO', 'total': 1}]


def test_desempenho_por_setor(ordens_do_mes):
    setores = {s['etapa']: s for s in relatorio_periodo(ordens_do_mes, '2024-05-01', '2024-05-31')['setores']}

    assert list(setores) == ['pre_impressao', 'impressao', 'producao', 'instalacao', 'expedicao']
    design = setores['pre_impressao']
    # Empate em conclusões: fica quem chegou primeiro ao máximo
    assert design['destaque'] == 'CARLOS'
    assert design['conclusoes_destaque'] == 1
    assert design['tempo_medio_minutos'] == 60
    assert design['tempo_medio'] == '1h 0m'
    assert design['carga'] == 1

    impressao = setores['impressao']
    assert impressao['destaque'] == 'JOÃO'
    assert impressao['tempo_medio'] == '-'
    assert impressao['carga'] == 2


def test_periodo_vazio(ordens_do_mes):
    relatorio = relatorio_periodo(ordens_do_mes, '2023-01-01', '2023-01-31')
    assert relatorio['total'] == 0
    assert relatorio['taxa_refazimento'] == 0.0
    assert relatorio['lead_time_medio_dias'] == 0.0
    assert all(s['destaque'] == '-' for s in relatorio['setores'])


def test_formatar_duracao():
    assert formatar_duracao(0) == '-'
    assert formatar_duracao(45) == '45 min'
    assert formatar_duracao(125) == '2h 5m'


def test_limpeza_so_arquivadas_no_periodo(fazer_ordem):
    ordens = [
        fazer_ordem(id='x', data_entrega='2024-05-02', arquivada=True),
        fazer_ordem(id='y', data_entrega='2024-06-01', arquivada=True),
        fazer_ordem(id='z', data_entrega='2024-05-02'),
        fazer_ordem(id='w', data_entrega='2024-05-31', arquivada=True),
    ]
    assert [o['id'] for o in itens_para_limpeza(ordens, '2024-05-01', '2024-05-31')] == ['x', 'w']
    assert itens_para_limpeza(ordens, '2020-01-01', '2020-01-31') == []


def test_limpeza_rejeita_periodo_invertido(fazer_ordem):
    with pytest.raises(ErroValidacao) as erro:
        itens_para_limpeza([fazer_ordem(arquivada=True)], '2024-05-31', '2024-05-01')
    assert erro.value.mensagem == 'A Data Inicial não pode ser maior que a Final.'

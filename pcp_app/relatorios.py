# pcp_app/relatorios.py
"""
Relatórios administrativos: desempenho do período e análise de limpeza.

O período do relatório usa a data de criação do item; a limpeza usa a data
de entrega dos itens arquivados.
"""
from datetime import datetime
from .etapas import ETAPAS, ROTULOS_ETAPAS, CONCLUIDO, EM_PRODUCAO
from .validacao import validar_periodo

TOP_LISTAS = 5
SEM_NOME = 'N/A'


def _instante(valor):
    return datetime.fromisoformat(valor)


def formatar_duracao(minutos):
    """'45 min', '2h 5m' ou '-' quando não há medição."""
    if minutos <= 0:
        return '-'
    if minutos < 60:
        return f"{round(minutos)} min"
    horas = int(minutos // 60)
    return f"{horas}h {round(minutos % 60)}m"


def _no_periodo(ordem, inicio, fim):
    criado_em = ordem.get('criado_em')
    if not criado_em:
        return False
    return inicio <= criado_em[:10] <= fim


def _vendedores(ordens):
    contagem = {}
    for ordem in ordens:
        dados = contagem.setdefault(ordem.get('vendedor') or SEM_NOME, {'total': 0, 'ativas': 0, 'refazimentos': 0})
        dados['total'] += 1
        if not ordem.get('arquivada'):
            dados['ativas'] += 1
        if ordem.get('refazimento'):
            dados['refazimentos'] += 1
    lista = [dict(dados, nome=nome) for nome, dados in contagem.items()]
    lista.sort(key=lambda v: v['total'], reverse=True)
    return lista[:TOP_LISTAS]


def _clientes(ordens):
    contagem = {}
    for ordem in ordens:
        nome = ordem.get('cliente') or SEM_NOME
        contagem[nome] = contagem.get(nome, 0) + 1
    lista = [{'nome': nome, 'total': total} for nome, total in contagem.items()]
    lista.sort(key=lambda c: c['total'], reverse=True)
    return lista[:TOP_LISTAS]


def _desempenho_setores(ordens):
    setores = {
        etapa: {'carga': 0, 'conclusoes': {}, 'destaque': '-', 'maximo': 0, 'duracoes': []}
        for etapa in ETAPAS
    }
    for ordem in ordens:
        if not ordem.get('arquivada'):
            for etapa in ETAPAS:
                if ordem.get(etapa) != CONCLUIDO:
                    setores[etapa]['carga'] += 1

        # Último início e última conclusão de cada etapa, na ordem do histórico
        marcos = {}
        for entrada in ordem.get('historico') or []:
            setor = setores.get(entrada.get('setor'))
            if setor is None:
                continue
            if entrada.get('status') == CONCLUIDO:
                nome = entrada.get('usuario_nome')
                setor['conclusoes'][nome] = setor['conclusoes'].get(nome, 0) + 1
                if setor['conclusoes'][nome] > setor['maximo']:
                    setor['maximo'] = setor['conclusoes'][nome]
                    setor['destaque'] = nome
                marcos.setdefault(entrada['setor'], {})['fim'] = _instante(entrada['timestamp'])
            elif entrada.get('status') == EM_PRODUCAO:
                marcos.setdefault(entrada['setor'], {})['inicio'] = _instante(entrada['timestamp'])

        for etapa, marco in marcos.items():
            if 'inicio' in marco and 'fim' in marco:
                minutos = (marco['fim'] - marco['inicio']).total_seconds() / 60
                if minutos > 0:
                    setores[etapa]['duracoes'].append(minutos)

    desempenho = []
    for etapa, dados in setores.items():
        duracoes = dados['duracoes']
        media = sum(duracoes) / len(duracoes) if duracoes else 0
        desempenho.append({
            'etapa': etapa,
            'rotulo': ROTULOS_ETAPAS[etapa],
            'destaque': dados['destaque'],
            'conclusoes_destaque': dados['maximo'],
            'tempo_medio_minutos': media,
            'tempo_medio': formatar_duracao(media),
            'carga': dados['carga'],
        })
    return desempenho


def _lead_time_medio_dias(ordens):
    diferencas = []
    for ordem in ordens:
        if ordem.get('arquivada') and ordem.get('criado_em') and ordem.get('arquivada_em'):
            segundos = (_instante(ordem['arquivada_em']) - _instante(ordem['criado_em'])).total_seconds()
            if segundos > 0:
                diferencas.append(segundos)
    if not diferencas:
        return 0.0
    return round(sum(diferencas) / len(diferencas) / 86400, 1)


def relatorio_periodo(ordens, inicio, fim):
    """Indicadores dos itens criados entre `inicio` e `fim` (inclusive)."""
    validar_periodo(inicio, fim)
    periodo = [o for o in ordens if _no_periodo(o, inicio, fim)]
    total = len(periodo)
    arquivadas = sum(1 for o in periodo if o.get('arquivada'))
    refazimentos = sum(1 for o in periodo if o.get('refazimento'))
    return {
        'inicio': inicio,
        'fim': fim,
        'total': total,
        'ativas': total - arquivadas,
        'arquivadas': arquivadas,
        'refazimentos': refazimentos,
        'taxa_refazimento': round(refazimentos / total * 100, 1) if total else 0.0,
        'vendedores': _vendedores(periodo),
        'clientes': _clientes(periodo),
        'setores': _desempenho_setores(periodo),
        'lead_time_medio_dias': _lead_time_medio_dias(periodo),
    }


def itens_para_limpeza(ordens, inicio, fim):
    """Itens arquivados com entrega dentro do período; candidatos à exclusão em lote."""
    validar_periodo(inicio, fim)
    return [
        o for o in ordens
        if o.get('arquivada') and inicio <= (o.get('data_entrega') or '') <= fim
    ]

# pcp_app/filtros.py
import time
from datetime import date, timedelta
from .etapas import ETAPAS, EM_PRODUCAO
from .erros import ErroValidacao
from .utils import formatar_data_br

ABA_OPERACIONAL = 'OPERACIONAL'
ABA_CONCLUIDAS = 'CONCLUIDAS'
ABA_CALENDARIO = 'CALENDARIO'
ABA_KANBAN = 'KANBAN'
ABAS_VALIDAS = [ABA_OPERACIONAL, ABA_CONCLUIDAS, ABA_CALENDARIO, ABA_KANBAN]

FILTRO_TODAS = 'TODAS'
FILTRO_PRODUCAO = 'PRODUCAO'
FILTRO_ATRASADAS = 'ATRASADAS'
FILTROS_DASHBOARD = [FILTRO_TODAS, FILTRO_PRODUCAO, FILTRO_ATRASADAS]

CALENDARIO_TODAS = 'TODAS'
CALENDARIO_OPERACIONAIS = 'OPERACIONAIS'
CALENDARIO_CONCLUIDAS = 'CONCLUIDAS'

ATRASO_BUSCA = 0.3  # segundos


def filtrar_por_aba(ordens, aba):
    """Operacional mostra só ativas, Concluídas só arquivadas; calendário e Kanban mostram tudo."""
    if aba == ABA_OPERACIONAL:
        return [o for o in ordens if not o.get('arquivada')]
    if aba == ABA_CONCLUIDAS:
        return [o for o in ordens if o.get('arquivada')]
    if aba in (ABA_CALENDARIO, ABA_KANBAN):
        return list(ordens)
    raise ErroValidacao(f"Aba inválida: '{aba}'.")


def corresponde_busca(ordem, termo):
    termo = (termo or '').strip().casefold()
    if not termo:
        return True
    campos = [
        ordem.get('cliente'), ordem.get('numero_or'), ordem.get('vendedor'),
        ordem.get('item'), ordem.get('numero_item'), formatar_data_br(ordem.get('data_entrega')),
    ]
    return any(termo in str(campo).casefold() for campo in campos if campo)


def filtrar_por_busca(ordens, termo):
    return [o for o in ordens if corresponde_busca(o, termo)]


def em_producao(ordem):
    return any(ordem.get(etapa) == EM_PRODUCAO for etapa in ETAPAS)


def atrasada(ordem, hoje):
    return not ordem.get('arquivada') and ordem.get('data_entrega', '') < hoje


def filtrar_dashboard(ordens, filtro, aba, hoje):
    """Filtros rápidos do painel; só valem na aba operacional."""
    if filtro not in FILTROS_DASHBOARD:
        raise ErroValidacao(f"Filtro inválido: '{filtro}'.")
    if aba != ABA_OPERACIONAL or filtro == FILTRO_TODAS:
        return list(ordens)
    if filtro == FILTRO_PRODUCAO:
        return [o for o in ordens if em_producao(o)]
    return [o for o in ordens if atrasada(o, hoje)]


def alternar_filtro_setor(atual, etapa):
    """Clicar no mesmo setor limpa o filtro; clicar em outro troca."""
    if etapa is None or etapa == atual:
        return None
    if etapa not in ETAPAS:
        raise ErroValidacao(f"Etapa inválida: '{etapa}'.")
    return etapa


def filtrar_por_setor(ordens, etapa):
    if not etapa:
        return list(ordens)
    return [o for o in ordens if o.get(etapa) == EM_PRODUCAO]


def calcular_estatisticas(ordens, hoje):
    ativas = [o for o in ordens if not o.get('arquivada')]
    return {
        'total': len(ativas),
        'em_andamento': sum(1 for o in ativas if em_producao(o)),
        'atrasadas': sum(1 for o in ativas if o.get('data_entrega', '') < hoje),
    }


def aplicar_filtros(ordens, aba=ABA_OPERACIONAL, busca='', filtro=FILTRO_TODAS, setor=None, hoje=None):
    """Pipeline completo da listagem: busca, aba, filtro rápido e filtro de setor."""
    resultado = filtrar_por_busca(ordens, busca)
    resultado = filtrar_por_aba(resultado, aba)
    resultado = filtrar_dashboard(resultado, filtro, aba, hoje)
    return filtrar_por_setor(resultado, setor)


class BuscaAdiada:
    """
    Debounce da busca: o termo só passa a valer depois de 300ms sem
    novas digitações, e sempre vale o último termo digitado.
    """

    def __init__(self, atraso=ATRASO_BUSCA, relogio=time.monotonic):
        self.atraso = atraso
        self.relogio = relogio
        self._pendente = None
        self._digitado_em = None
        self._efetivo = ''

    def digitar(self, termo):
        self._pendente = termo
        self._digitado_em = self.relogio()

    def termo(self):
        if self._digitado_em is not None and self.relogio() - self._digitado_em >= self.atraso:
            self._efetivo = self._pendente
            self._pendente = None
            self._digitado_em = None
        return self._efetivo


# --- CALENDÁRIO ---

def filtrar_calendario(ordens, modo=CALENDARIO_TODAS):
    if modo == CALENDARIO_OPERACIONAIS:
        return [o for o in ordens if not o.get('arquivada')]
    if modo == CALENDARIO_CONCLUIDAS:
        return [o for o in ordens if o.get('arquivada')]
    if modo == CALENDARIO_TODAS:
        return list(ordens)
    raise ErroValidacao(f"Modo de calendário inválido: '{modo}'.")


def agrupar_por_dia(ordens, ano, mes):
    """Itens do mês agrupados pela data de entrega: {'YYYY-MM-DD': [ordens]}."""
    prefixo = f"{ano:04d}-{mes:02d}-"
    dias = {}
    for ordem in ordens:
        data = ordem.get('data_entrega') or ''
        if data.startswith(prefixo):
            dias.setdefault(data, []).append(ordem)
    return dict(sorted(dias.items()))


def semana_do_calendario(ordens, data):
    """Sete dias de domingo a sábado em volta de `data`: [{'data', 'ordens'}]."""
    if isinstance(data, str):
        data = date.fromisoformat(data)
    domingo = data - timedelta(days=(data.weekday() + 1) % 7)
    dias = [(domingo + timedelta(days=i)).isoformat() for i in range(7)]
    return [{'data': dia, 'ordens': [o for o in ordens if o.get('data_entrega') == dia]} for dia in dias]


def resumo_anual(ordens, ano):
    """Contagem por mês (total, ativas, arquivadas) para a visão anual."""
    meses = [{'mes': m, 'total': 0, 'ativas': 0, 'arquivadas': 0} for m in range(1, 13)]
    prefixo = f"{ano:04d}-"
    for ordem in ordens:
        data = ordem.get('data_entrega') or ''
        if not data.startswith(prefixo):
            continue
        resumo = meses[int(data[5:7]) - 1]
        resumo['total'] += 1
        if ordem.get('arquivada'):
            resumo['arquivadas'] += 1
        else:
            resumo['ativas'] += 1
    return meses

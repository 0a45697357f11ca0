# pcp_app/validacao.py
from datetime import date
from .erros import ErroValidacao

CAMPOS_CABECALHO_OBRIGATORIOS = ['numero_or', 'cliente', 'vendedor']


def data_iso_valida(valor):
    """True só para datas no formato 'AAAA-MM-DD', o único que as visões comparam."""
    if not isinstance(valor, str):
        return False
    try:
        return date.fromisoformat(valor).isoformat() == valor
    except ValueError:
        return False


def validar_periodo(inicio, fim):
    if not inicio or not fim:
        raise ErroValidacao('Selecione a Data Inicial e Final.')
    if not data_iso_valida(inicio) or not data_iso_valida(fim):
        raise ErroValidacao('Datas do período devem estar no formato AAAA-MM-DD.')
    if inicio > fim:
        raise ErroValidacao('A Data Inicial não pode ser maior que a Final.')


def _referencia(item):
    return str(item.get('numero_item') or '').strip().upper()


def validar_salvamento(cabecalho, itens, existentes=None):
    """
    Valida uma O.R antes de qualquer gravação.

    `existentes` são os itens já gravados da mesma O.R; a referência do item
    (numero_item) não pode se repetir dentro da O.R, a não ser que o item
    seja marcado como refazimento. Todo item precisa de data de entrega; um
    item gravado que vem sem o campo mantém a data que já tinha.
    """
    if not all(str(cabecalho.get(campo) or '').strip() for campo in CAMPOS_CABECALHO_OBRIGATORIOS):
        raise ErroValidacao('Preencha os dados gerais da O.R (Número, Cliente e Vendedor).')

    ids_no_formulario = {item.get('id') for item in itens if item.get('id')}
    ids_gravados = {existente.get('id') for existente in existentes or []}
    referencias_gravadas = {}
    for existente in existentes or []:
        if existente.get('id') in ids_no_formulario:
            continue
        ref = _referencia(existente)
        if ref:
            referencias_gravadas[ref] = existente.get('id')

    vistas = set()
    for indice, item in enumerate(itens, start=1):
        if not str(item.get('item') or '').strip():
            raise ErroValidacao(f"O item #{indice} precisa de uma descrição.")
        mantem_data = 'data_entrega' not in item and item.get('id') in ids_gravados
        if not mantem_data and not data_iso_valida(item.get('data_entrega')):
            raise ErroValidacao(f"O item #{indice} precisa de uma data de entrega válida.")
        ref = _referencia(item)
        if not ref or item.get('refazimento'):
            continue
        if ref in vistas or ref in referencias_gravadas:
            raise ErroValidacao(
                f"O item #{indice} possui uma referência duplicada. Corrija ou marque como Refazimento."
            )
        vistas.add(ref)


def sugerir_proxima_referencia(itens):
    """Maior referência numérica + 1, com dois dígitos. Vazio se nenhuma for numérica."""
    numeros = []
    for item in itens:
        ref = str(item.get('numero_item') or '').strip()
        digitos = ''
        for caractere in ref:
            if not caractere.isdigit():
                break
            digitos += caractere
        if digitos:
            numeros.append(int(digitos))
    if not numeros:
        return ''
    return str(max(numeros) + 1).zfill(2)

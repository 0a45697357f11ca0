# pcp_app/notificacoes_regras.py
"""
Regras de alertas: vencimentos do dia, atrasos e alertas manuais.

As listas de notificações são tratadas como imutáveis; cada operação
devolve uma lista nova.
"""
import uuid
from .erros import ErroValidacao
from .utils import agora_iso

TIPO_URGENTE = 'urgent'
TIPO_AVISO = 'warning'
TIPO_INFO = 'info'
TIPO_SUCESSO = 'success'
TIPOS_VALIDOS = [TIPO_URGENTE, TIPO_AVISO, TIPO_SUCESSO, TIPO_INFO]

PRIORIDADE_TIPO = {TIPO_URGENTE: 3, TIPO_AVISO: 2, TIPO_SUCESSO: 1, TIPO_INFO: 0}

DESTINO_TODOS = 'ALL'
LIMITE_NOTIFICACOES = 50

ACAO_RESET_SENHA = 'RESET_SENHA'


class AcaoResetSenha:
    """Ação anexada a um alerta de pedido de reset de senha."""
    tipo = ACAO_RESET_SENHA
    rotulo = 'RESETAR'

    def __init__(self, login_alvo):
        self.login_alvo = login_alvo

    def __eq__(self, outro):
        return isinstance(outro, AcaoResetSenha) and outro.login_alvo == self.login_alvo

    def __repr__(self):
        return f"AcaoResetSenha({self.login_alvo!r})"


def acao_para_dict(acao):
    if acao is None:
        return None
    if isinstance(acao, AcaoResetSenha):
        return {'tipo': ACAO_RESET_SENHA, 'login_alvo': acao.login_alvo}
    raise TypeError(f"Ação de notificação desconhecida: {acao!r}")


def acao_de_dict(dados):
    if not dados:
        return None
    if dados.get('tipo') == ACAO_RESET_SENHA:
        return AcaoResetSenha(str(dados.get('login_alvo') or '').strip())
    return None


def criar_notificacao(titulo, mensagem, tipo, destinatario_id=DESTINO_TODOS, id=None,
                      setor='Geral', remetente_nome=None, data_referencia=None, acao=None, agora=None):
    return {
        'id': id or uuid.uuid4().hex,
        'titulo': titulo,
        'mensagem': mensagem,
        'tipo': tipo,
        'timestamp': agora or agora_iso(),
        'lida_por': [],
        'destinatario_id': destinatario_id,
        'setor_destino': setor,
        'remetente_nome': remetente_nome,
        'data_referencia': data_referencia,
        'acao': acao_para_dict(acao),
        'rotulo_acao': acao.rotulo if acao else None,
    }


def criar_alerta_manual(titulo, mensagem, tipo, destinatario_id=DESTINO_TODOS, remetente_nome=None,
                        data_referencia=None, agora=None):
    """Alerta enviado por um usuário; título em caixa alta e id aleatório."""
    if tipo not in TIPOS_VALIDOS:
        raise ErroValidacao(f"Tipo de alerta inválido: '{tipo}'.")
    if not str(titulo or '').strip() or not str(mensagem or '').strip():
        raise ErroValidacao('Título e mensagem são obrigatórios.')
    return criar_notificacao(
        titulo.strip().upper(), mensagem, tipo, destinatario_id,
        remetente_nome=remetente_nome, data_referencia=data_referencia, agora=agora,
    )


def verificar_alertas(ordens, hoje, agora=None):
    """Gera alertas de prazo para as ordens ativas. Os ids são determinísticos por ordem e dia."""
    alertas = []
    for ordem in ordens:
        if ordem.get('arquivada'):
            continue
        data_entrega = ordem.get('data_entrega') or ''
        if data_entrega == hoje:
            alertas.append(criar_notificacao(
                '📅 ATENÇÃO: PRAZO HOJE',
                f"O.R #{ordem['numero_or']} vence hoje. Prioridade máxima.",
                TIPO_AVISO, id=f"today-{ordem['id']}-{hoje}",
                data_referencia=data_entrega, agora=agora,
            ))
        elif data_entrega < hoje:
            alertas.append(criar_notificacao(
                '🚨 URGENTE: ATRASADO',
                f"O.R #{ordem['numero_or']} está atrasada!",
                TIPO_URGENTE, id=f"delay-{ordem['id']}-{hoje}",
                data_referencia=data_entrega, agora=agora,
            ))
    return alertas


def mesclar_alertas(existentes, novos, limite=LIMITE_NOTIFICACOES):
    """Novos alertas entram no topo; ids repetidos são descartados e a lista é cortada no limite."""
    ids = {n['id'] for n in existentes}
    unicos = []
    for alerta in novos:
        if alerta['id'] in ids:
            continue
        ids.add(alerta['id'])
        unicos.append(alerta)
    if not unicos:
        return list(existentes)
    return (unicos + list(existentes))[:limite]


def adicionar_sem_duplicar(existentes, notificacao, limite=LIMITE_NOTIFICACOES):
    """Ignora a notificação se já houver outra com mesmo título, mensagem e destinatário."""
    for n in existentes:
        if (n['titulo'] == notificacao['titulo'] and n['mensagem'] == notificacao['mensagem']
                and n['destinatario_id'] == notificacao['destinatario_id']):
            return list(existentes)
    return ([notificacao] + list(existentes))[:limite]


def destinada_a(notificacao, usuario_id):
    return notificacao.get('destinatario_id') in (DESTINO_TODOS, usuario_id)


def visiveis_para(notificacoes, usuario_id):
    """Alertas não lidos do usuário, do mais grave para o menos grave."""
    visiveis = [
        n for n in notificacoes
        if destinada_a(n, usuario_id) and usuario_id not in n.get('lida_por', [])
    ]
    return sorted(visiveis, key=lambda n: PRIORIDADE_TIPO.get(n['tipo'], 0), reverse=True)


def _com_leitura(notificacao, usuario_id):
    if usuario_id in notificacao.get('lida_por', []):
        return notificacao
    return dict(notificacao, lida_por=list(notificacao.get('lida_por', [])) + [usuario_id])


def marcar_como_lida(notificacoes, notificacao_id, usuario_id):
    return [
        _com_leitura(n, usuario_id) if n['id'] == notificacao_id else n
        for n in notificacoes
    ]


def marcar_todas_como_lidas(notificacoes, usuario_id):
    return [
        _com_leitura(n, usuario_id) if destinada_a(n, usuario_id) else n
        for n in notificacoes
    ]

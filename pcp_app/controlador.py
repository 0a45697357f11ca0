# pcp_app/controlador.py
"""
Dono do estado em memória da produção.

Toda mudança passa por uma operação nomeada deste controlador: a alteração é
aplicada primeiro no estado local e depois enviada ao armazenamento. Com
`estado_local_autoritativo = True` uma falha de gravação é apenas registrada
em log; o estado local não é desfeito. Com False, a falha é propagada para
quem chamou a operação.
"""
import logging
import re
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

from .extensions import tz_brasilia
from .etapas import ROLE_ADMIN, ROLES_VALIDAS, DEPARTAMENTOS_VALIDOS, GERAL
from .erros import ErroValidacao, ErroPersistencia, PermissaoNegada, RegistroNaoEncontrado
from .transicoes import aplicar_transicao, aplicar_edicao, arquivar, reativar, nova_ordem, MODO_CICLO
from .validacao import validar_salvamento, sugerir_proxima_referencia, data_iso_valida
from .agrupamento import agrupar_para_exibicao, agrupar_kanban, historico_ordenado
from .filtros import (
    aplicar_filtros, filtrar_por_busca, calcular_estatisticas, filtrar_calendario,
    agrupar_por_dia, resumo_anual, semana_do_calendario, ABA_OPERACIONAL, FILTRO_TODAS, CALENDARIO_TODAS
)
from .relatorios import relatorio_periodo, itens_para_limpeza
from . import notificacoes_regras as regras

logger = logging.getLogger(__name__)

SENHA_PADRAO_ADMIN = '@dm123'
SENHA_PADRAO_USUARIO = '1234'
TAMANHO_MINIMO_SENHA = 4

USUARIOS_PADRAO = [
    {'id': 'admin-id', 'nome': 'ADMINISTRADOR', 'email': 'adm', 'role': 'Admin', 'cargo': 'DIRETORIA', 'departamento': 'Geral', 'senha': SENHA_PADRAO_ADMIN},
    {'id': 'u2', 'nome': 'CARLOS ARTE', 'email': 'arte', 'role': 'Operador', 'cargo': 'DESIGNER', 'departamento': 'pre_impressao', 'senha': SENHA_PADRAO_USUARIO},
    {'id': 'u3', 'nome': 'JOÃO PRINT', 'email': 'print', 'role': 'Operador', 'cargo': 'IMPRESSOR', 'departamento': 'impressao', 'senha': SENHA_PADRAO_USUARIO},
    {'id': 'u4', 'nome': 'MARCOS SERRALHEIRO', 'email': 'producao', 'role': 'Operador', 'cargo': 'METALÚRGICO', 'departamento': 'producao', 'senha': SENHA_PADRAO_USUARIO},
]

CONFIGURACOES_PADRAO = {
    'nome': 'NEWCOM CONTROL',
    'endereco': 'Rua da Produção, 123',
    'contato': 'Tel: (00) 0000-0000',
    'logo_url': None,
    'lembretes_ativos': False,
    'dias_lembrete_instalacao': 1,
    'dias_lembrete_expedicao': 1,
}

CAMPOS_CABECALHO = ['numero_or', 'cliente', 'vendedor', 'prioridade', 'observacao']

_PADRAO_QR = re.compile(r'#(\w+)')


def usuarios_padrao():
    """Usuários iniciais, com a senha já convertida em hash."""
    usuarios = []
    for dados in USUARIOS_PADRAO:
        usuario = {k: v for k, v in dados.items() if k != 'senha'}
        usuario['password_hash'] = generate_password_hash(dados['senha'])
        usuarios.append(usuario)
    return usuarios


def usuario_publico(usuario):
    """Usuário sem o hash da senha, para devolver na API."""
    return {k: v for k, v in usuario.items() if k != 'password_hash'}


class ControladorProducao:
    estado_local_autoritativo = True

    def __init__(self, armazenamento, relogio=None, sincronizacao_assincrona=False, ao_falhar_sincronizacao=None):
        self.armazenamento = armazenamento
        self.relogio = relogio or (lambda: datetime.now(tz_brasilia))
        self.origem = uuid.uuid4().hex
        self.ao_falhar_sincronizacao = ao_falhar_sincronizacao
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1) if sincronizacao_assincrona else None

        self.ordens = []
        self.usuarios = []
        self.logs_globais = []
        self.configuracoes = dict(CONFIGURACOES_PADRAO)
        self.ramais = []
        self.notificacoes_sistema = []
        self.notificacoes_manuais = []
        self.offline = True
        self.carregado = False

        armazenamento.inscrever(self._ao_mudar)

    # --- Relógio ---

    def _agora(self):
        return self.relogio().isoformat()

    def hoje(self):
        return self.relogio().date().isoformat()

    # --- Carregamento e sincronização ---

    def carregar(self):
        """Recarrega tudo do armazenamento. O snapshot carregado substitui o estado local."""
        snapshot = self.armazenamento.carregar()
        with self._lock:
            self.offline = bool(snapshot.get('offline'))
            if snapshot.get('ordens') is not None:
                self.ordens = list(snapshot['ordens'])
            if snapshot.get('usuarios'):
                self.usuarios = list(snapshot['usuarios'])
            elif not self.usuarios:
                self.usuarios = usuarios_padrao()
            if snapshot.get('configuracoes'):
                self.configuracoes = dict(CONFIGURACOES_PADRAO, **snapshot['configuracoes'])
            if snapshot.get('ramais') is not None:
                self.ramais = list(snapshot['ramais'])
            if snapshot.get('logs') is not None:
                self.logs_globais = list(snapshot['logs'])
            self.carregado = True
        logger.info(f"Dados carregados: {len(self.ordens)} itens ({'offline' if self.offline else 'online'}).")

    def _ao_mudar(self, origem):
        # Mudança feita por outra sessão: recarga completa, sem mesclagem
        if origem == self.origem:
            return
        self.carregar()

    def _sincronizar(self, descricao, funcao, *args, **kwargs):
        kwargs['origem'] = self.origem
        if self._executor is not None and self.estado_local_autoritativo:
            self._executor.submit(self._executar_sincronizacao, descricao, funcao, args, kwargs)
        else:
            self._executar_sincronizacao(descricao, funcao, args, kwargs)

    def _executar_sincronizacao(self, descricao, funcao, args, kwargs):
        try:
            funcao(*args, **kwargs)
        except ErroPersistencia as e:
            logger.error(f"ERRO ao sincronizar ({descricao}): {e}")
            if self.ao_falhar_sincronizacao:
                self.ao_falhar_sincronizacao(descricao, e)
            if not self.estado_local_autoritativo:
                raise

    def encerrar(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    # --- Consultas básicas ---

    def buscar_ordem(self, ordem_id):
        for ordem in self.ordens:
            if ordem['id'] == ordem_id:
                return ordem
        raise RegistroNaoEncontrado(f"Ordem {ordem_id} não encontrada.")

    def buscar_usuario(self, usuario_id):
        for usuario in self.usuarios:
            if usuario['id'] == usuario_id:
                return usuario
        raise RegistroNaoEncontrado(f"Usuário {usuario_id} não encontrado.")

    def itens_da_or(self, numero_or):
        return [o for o in self.ordens if o.get('numero_or') == numero_or]

    def _substituir_ordem(self, atualizada):
        self.ordens = [atualizada if o['id'] == atualizada['id'] else o for o in self.ordens]

    def _novo_log(self, autor, tipo_acao, info_alvo, agora):
        return {
            'id': uuid.uuid4().hex,
            'usuario_id': (autor or {}).get('id', 'sys'),
            'usuario_nome': (autor or {}).get('nome', 'Sistema'),
            'timestamp': agora,
            'tipo_acao': tipo_acao,
            'info_alvo': info_alvo,
        }

    # --- Operações de ordens ---

    def atualizar_status(self, ordem_id, etapa, usuario_id, modo=MODO_CICLO):
        with self._lock:
            usuario = self.buscar_usuario(usuario_id)
            ordem = self.buscar_ordem(ordem_id)
            atualizada, entrada = aplicar_transicao(ordem, etapa, usuario, modo, self._agora())
            self._substituir_ordem(atualizada)
        if atualizada['arquivada'] and not ordem.get('arquivada'):
            logger.info(f"O.R #{atualizada['numero_or']} item {ordem_id} finalizado e arquivado.")
        self._sincronizar(f"atualizar ordem {ordem_id}", self.armazenamento.atualizar_ordem, atualizada)
        return atualizada, entrada

    def salvar_ordens(self, cabecalho, itens, usuario_id, ids_excluir=None):
        """
        Cria ou atualiza os itens de uma O.R. Os campos de cabeçalho são gravados
        em todos os itens da O.R, inclusive nos que não vieram no formulário.
        """
        ids_excluir = [i for i in (ids_excluir or []) if i]
        with self._lock:
            usuario = self.buscar_usuario(usuario_id)
            if itens:
                existentes = [o for o in self.itens_da_or(cabecalho.get('numero_or')) if o['id'] not in ids_excluir]
                validar_salvamento(cabecalho, itens, existentes)

            agora = self._agora()
            removidas = [o for o in self.ordens if o['id'] in ids_excluir]
            excluidas = [o['id'] for o in removidas]
            novos_logs = [self._novo_log(usuario, 'DELETE_ORDER', f"O.R #{o['numero_or']}", agora) for o in removidas]
            self.logs_globais = self.logs_globais + novos_logs
            self.ordens = [o for o in self.ordens if o['id'] not in excluidas]
            logs = list(self.logs_globais)

            cab = {campo: cabecalho.get(campo) for campo in CAMPOS_CABECALHO if campo in cabecalho}
            criadas, atualizadas, salvas = [], [], []
            for item in itens:
                dados = dict(item, **cab)
                atual = next((o for o in self.ordens if item.get('id') and o['id'] == item['id']), None)
                if atual is not None:
                    ordem = aplicar_edicao(atual, dados, usuario, agora)
                    self._substituir_ordem(ordem)
                    atualizadas.append(ordem)
                else:
                    ordem = nova_ordem(dados, usuario, agora)
                    self.ordens.insert(0, ordem)
                    criadas.append(ordem)
                salvas.append(ordem)

            if itens:
                ids_salvos = {o['id'] for o in salvas}
                for membro in self.itens_da_or(cab.get('numero_or')):
                    if membro['id'] in ids_salvos:
                        continue
                    if all(membro.get(campo) == valor for campo, valor in cab.items()):
                        continue
                    ordem = aplicar_edicao(membro, cab, usuario, agora)
                    self._substituir_ordem(ordem)
                    atualizadas.append(ordem)

        if novos_logs:
            self._sincronizar("salvar logs", self.armazenamento.salvar_dados_globais, logs=logs)
        for ordem_id in excluidas:
            self._sincronizar(f"excluir ordem {ordem_id}", self.armazenamento.excluir_ordem, ordem_id)
        for ordem in criadas:
            self._sincronizar(f"criar ordem {ordem['id']}", self.armazenamento.criar_ordem, ordem)
        for ordem in atualizadas:
            self._sincronizar(f"atualizar ordem {ordem['id']}", self.armazenamento.atualizar_ordem, ordem)
        return salvas

    def arquivar_ordem(self, ordem_id):
        with self._lock:
            atualizada = arquivar(self.buscar_ordem(ordem_id), self._agora())
            self._substituir_ordem(atualizada)
        self._sincronizar(f"arquivar ordem {ordem_id}", self.armazenamento.atualizar_ordem, atualizada)
        return atualizada

    def reativar_ordem(self, ordem_id):
        with self._lock:
            atualizada = reativar(self.buscar_ordem(ordem_id))
            self._substituir_ordem(atualizada)
        self._sincronizar(f"reativar ordem {ordem_id}", self.armazenamento.atualizar_ordem, atualizada)
        return atualizada

    def excluir_ordem(self, ordem_id, usuario_id):
        with self._lock:
            ordem = self.buscar_ordem(ordem_id)
            autor = self._autor_ou_sistema(usuario_id)
            log = self._novo_log(autor, 'DELETE_ORDER', f"O.R #{ordem['numero_or']}", self._agora())
            self.logs_globais = self.logs_globais + [log]
            self.ordens = [o for o in self.ordens if o['id'] != ordem_id]
            logs = list(self.logs_globais)
        self._sincronizar("salvar logs", self.armazenamento.salvar_dados_globais, logs=logs)
        self._sincronizar(f"excluir ordem {ordem_id}", self.armazenamento.excluir_ordem, ordem_id)
        return log

    def excluir_ordens_em_lote(self, ids, usuario_id):
        with self._lock:
            autor = self._autor_ou_sistema(usuario_id)
            agora = self._agora()
            novos_logs = []
            for ordem in self.ordens:
                if ordem['id'] in ids:
                    novos_logs.append(self._novo_log(
                        autor, 'DELETE_ORDER', f"O.R #{ordem['numero_or']} - {ordem.get('cliente')} (Limpeza)", agora
                    ))
            excluidas = [o['id'] for o in self.ordens if o['id'] in ids]
            self.logs_globais = self.logs_globais + novos_logs
            self.ordens = [o for o in self.ordens if o['id'] not in ids]
            logs = list(self.logs_globais)
        self._sincronizar("salvar logs", self.armazenamento.salvar_dados_globais, logs=logs)
        for ordem_id in excluidas:
            self._sincronizar(f"excluir ordem {ordem_id}", self.armazenamento.excluir_ordem, ordem_id)
        return novos_logs

    def _autor_ou_sistema(self, usuario_id):
        try:
            return self.buscar_usuario(usuario_id)
        except RegistroNaoEncontrado:
            return None

    # --- Consultas derivadas ---

    def listar_ordens(self, aba=ABA_OPERACIONAL, busca='', filtro=FILTRO_TODAS, setor=None):
        return aplicar_filtros(self.ordens, aba, busca, filtro, setor, self.hoje())

    def tabela(self, direcao='asc', aba=ABA_OPERACIONAL, busca='', filtro=FILTRO_TODAS, setor=None):
        if direcao not in ('asc', 'desc'):
            raise ErroValidacao(f"Direção inválida: '{direcao}'.")
        ordens = self.listar_ordens(aba, busca, filtro, setor)
        return agrupar_para_exibicao(ordens, direcao, self.hoje())

    def kanban(self, busca=''):
        return agrupar_kanban(filtrar_por_busca(self.ordens, busca))

    def estatisticas(self):
        return calcular_estatisticas(self.ordens, self.hoje())

    def calendario(self, ano, mes, modo=CALENDARIO_TODAS, busca=''):
        if not 1 <= mes <= 12:
            raise ErroValidacao(f"Mês inválido: {mes}.")
        ordens = filtrar_calendario(filtrar_por_busca(self.ordens, busca), modo)
        return agrupar_por_dia(ordens, ano, mes)

    def resumo_anual(self, ano, modo=CALENDARIO_TODAS):
        return resumo_anual(filtrar_calendario(self.ordens, modo), ano)

    def calendario_semana(self, data=None, modo=CALENDARIO_TODAS, busca=''):
        data = data or self.hoje()
        if not data_iso_valida(data):
            raise ErroValidacao(f"Data inválida: '{data}'.")
        ordens = filtrar_calendario(filtrar_por_busca(self.ordens, busca), modo)
        return semana_do_calendario(ordens, data)

    def relatorio(self, inicio=None, fim=None):
        """Relatório do período; sem datas, do primeiro dia do mês até hoje."""
        hoje = self.hoje()
        return relatorio_periodo(self.ordens, inicio or hoje[:8] + '01', fim or hoje)

    def analisar_limpeza(self, inicio, fim):
        itens = itens_para_limpeza(self.ordens, inicio, fim)
        if not itens:
            logger.info(f"Nenhum item arquivado com entrega entre {inicio} e {fim}.")
        return itens

    def historico_ordem(self, ordem_id):
        return historico_ordenado(self.buscar_ordem(ordem_id))

    def proxima_referencia(self, numero_or):
        return sugerir_proxima_referencia(self.itens_da_or(numero_or))

    def localizar_por_qr(self, texto):
        """Encontra a ordem pelo texto lido da etiqueta (ex.: 'O.R #112014 - ...')."""
        texto = texto or ''
        achado = _PADRAO_QR.search(texto)
        numero_or = achado.group(1) if achado else None
        for ordem in self.ordens:
            if numero_or and ordem.get('numero_or') == numero_or:
                return ordem
        for ordem in self.ordens:
            if (ordem.get('numero_or') and ordem['numero_or'] in texto) or ordem['id'] in texto:
                return ordem
        raise RegistroNaoEncontrado('O.R não encontrada no sistema.')

    def status_sincronizacao(self):
        return {
            'offline': self.offline,
            'carregado': self.carregado,
            'total_itens': len(self.ordens),
            'total_ativas': sum(1 for o in self.ordens if not o.get('arquivada')),
        }

    # --- Usuários ---

    def autenticar(self, login, senha):
        entrada = (login or '').strip().lower()
        for usuario in self.usuarios:
            if entrada in ((usuario.get('email') or '').lower(), (usuario.get('nome') or '').lower()):
                if usuario.get('password_hash') and check_password_hash(usuario['password_hash'], senha or ''):
                    return usuario
        return None

    def _validar_usuario(self, dados, usuario_id=None):
        if not str(dados.get('nome') or '').strip() or not str(dados.get('email') or '').strip():
            raise ErroValidacao('Nome e login são obrigatórios.')
        if dados.get('role') not in ROLES_VALIDAS:
            raise ErroValidacao(f"Perfil inválido: '{dados.get('role')}'.")
        if dados.get('departamento') not in DEPARTAMENTOS_VALIDOS:
            raise ErroValidacao(f"Departamento inválido: '{dados.get('departamento')}'.")
        login = dados['email'].strip().lower()
        for outro in self.usuarios:
            if outro['id'] != usuario_id and (outro.get('email') or '').lower() == login:
                raise ErroValidacao('Este login já está em uso.')

    def _salvar_usuarios(self):
        self._sincronizar("salvar usuários", self.armazenamento.salvar_dados_globais, usuarios=list(self.usuarios))

    def criar_usuario(self, dados):
        dados = dict(dados, departamento=dados.get('departamento') or GERAL)
        with self._lock:
            self._validar_usuario(dados)
            usuario = {
                'id': uuid.uuid4().hex,
                'nome': dados['nome'].strip().upper(),
                'email': dados['email'].strip(),
                'role': dados['role'],
                'cargo': (dados.get('cargo') or '').upper() or None,
                'departamento': dados['departamento'],
                'password_hash': generate_password_hash(dados.get('senha') or SENHA_PADRAO_USUARIO),
            }
            self.usuarios = self.usuarios + [usuario]
        self._salvar_usuarios()
        return usuario

    def atualizar_usuario(self, usuario_id, dados):
        with self._lock:
            atual = self.buscar_usuario(usuario_id)
            mesclado = dict(atual)
            for campo in ('nome', 'email', 'role', 'cargo', 'departamento'):
                if campo in dados:
                    mesclado[campo] = dados[campo]
            self._validar_usuario(mesclado, usuario_id)
            self.usuarios = [mesclado if u['id'] == usuario_id else u for u in self.usuarios]
        self._salvar_usuarios()
        return mesclado

    def definir_senha(self, usuario_id, senha):
        if not senha or len(senha) < TAMANHO_MINIMO_SENHA:
            raise ErroValidacao(f"A senha deve ter no mínimo {TAMANHO_MINIMO_SENHA} caracteres.")
        with self._lock:
            atual = self.buscar_usuario(usuario_id)
            atualizado = dict(atual, password_hash=generate_password_hash(senha))
            self.usuarios = [atualizado if u['id'] == usuario_id else u for u in self.usuarios]
        self._salvar_usuarios()
        return atualizado

    def excluir_usuario(self, usuario_id, autor_id):
        with self._lock:
            alvo = self.buscar_usuario(usuario_id)
            log = self._novo_log(self._autor_ou_sistema(autor_id), 'DELETE_USER', f"Usuário {alvo['nome']}", self._agora())
            self.logs_globais = self.logs_globais + [log]
            self.usuarios = [u for u in self.usuarios if u['id'] != usuario_id]
            logs = list(self.logs_globais)
        self._sincronizar("salvar logs", self.armazenamento.salvar_dados_globais, logs=logs)
        self._salvar_usuarios()
        return log

    # --- Configurações ---

    def atualizar_configuracoes(self, dados):
        with self._lock:
            novas = dict(self.configuracoes)
            for campo in CONFIGURACOES_PADRAO:
                if campo in dados:
                    novas[campo] = dados[campo]
            self.configuracoes = novas
        self._sincronizar("salvar configurações", self.armazenamento.salvar_dados_globais, configuracoes=novas)
        return novas

    def atualizar_ramais(self, ramais):
        lista = []
        for ramal in ramais:
            if not str(ramal.get('nome') or '').strip() or not str(ramal.get('numero') or '').strip():
                raise ErroValidacao('Nome e número do ramal são obrigatórios.')
            lista.append({
                'id': ramal.get('id') or uuid.uuid4().hex,
                'nome': ramal['nome'].strip().upper(),
                'numero': str(ramal['numero']).strip(),
                'departamento': (ramal.get('departamento') or 'GERAL').upper(),
            })
        with self._lock:
            self.ramais = lista
        self._sincronizar("salvar ramais", self.armazenamento.salvar_dados_globais, ramais=list(lista))
        return lista

    # --- Notificações ---

    def verificar_alertas(self):
        """Varredura de prazos; repetir a varredura no mesmo dia não duplica alertas."""
        with self._lock:
            novos = regras.verificar_alertas(self.ordens, self.hoje(), self._agora())
            self.notificacoes_sistema = regras.mesclar_alertas(self.notificacoes_sistema, novos)
            return novos

    def adicionar_notificacao(self, titulo, mensagem, tipo, destinatario_id=regras.DESTINO_TODOS, acao=None):
        notificacao = regras.criar_notificacao(titulo, mensagem, tipo, destinatario_id, acao=acao, agora=self._agora())
        with self._lock:
            self.notificacoes_sistema = regras.adicionar_sem_duplicar(self.notificacoes_sistema, notificacao)
        return notificacao

    def criar_alerta(self, remetente_id, destinatario_id, titulo, mensagem, tipo, data_referencia=None):
        with self._lock:
            remetente = self.buscar_usuario(remetente_id)
            if destinatario_id != regras.DESTINO_TODOS:
                self.buscar_usuario(destinatario_id)
            alerta = regras.criar_alerta_manual(
                titulo, mensagem, tipo, destinatario_id,
                remetente_nome=remetente.get('nome'), data_referencia=data_referencia, agora=self._agora()
            )
            self.notificacoes_manuais = [alerta] + self.notificacoes_manuais
        return alerta

    def _todas_notificacoes(self):
        return self.notificacoes_manuais + self.notificacoes_sistema

    def notificacoes_visiveis(self, usuario_id):
        return regras.visiveis_para(self._todas_notificacoes(), usuario_id)

    def marcar_como_lida(self, usuario_id, notificacao_id):
        with self._lock:
            self.notificacoes_manuais = regras.marcar_como_lida(self.notificacoes_manuais, notificacao_id, usuario_id)
            self.notificacoes_sistema = regras.marcar_como_lida(self.notificacoes_sistema, notificacao_id, usuario_id)

    def marcar_todas_como_lidas(self, usuario_id):
        with self._lock:
            self.notificacoes_manuais = regras.marcar_todas_como_lidas(self.notificacoes_manuais, usuario_id)
            self.notificacoes_sistema = regras.marcar_todas_como_lidas(self.notificacoes_sistema, usuario_id)

    def solicitar_reset_senha(self, login):
        """Avisa todos os administradores; o alerta carrega a ação de reset."""
        login = (login or '').strip()
        if not login:
            raise ErroValidacao('Informe o login.')
        enviados = []
        for admin in [u for u in self.usuarios if u.get('role') == ROLE_ADMIN]:
            enviados.append(self.adicionar_notificacao(
                '🔐 RESET DE SENHA', f'Usuário "{login}" pediu reset.', regras.TIPO_URGENTE,
                admin['id'], acao=regras.AcaoResetSenha(login)
            ))
        return enviados

    def executar_acao_notificacao(self, usuario_id, notificacao_id):
        executor = self.buscar_usuario(usuario_id)
        notificacao = next((n for n in self._todas_notificacoes() if n['id'] == notificacao_id), None)
        if notificacao is None:
            raise RegistroNaoEncontrado('Notificação não encontrada.')
        acao = regras.acao_de_dict(notificacao.get('acao'))
        if acao is None:
            raise ErroValidacao('Esta notificação não possui ação.')
        if isinstance(acao, regras.AcaoResetSenha):
            if executor.get('role') != ROLE_ADMIN:
                raise PermissaoNegada('Apenas administradores podem resetar senhas.')
            alvo = self._usuario_por_login_aproximado(acao.login_alvo)
            if alvo is None:
                raise RegistroNaoEncontrado('Erro: Usuário não encontrado.')
            atualizado = self.definir_senha(alvo['id'], SENHA_PADRAO_USUARIO)
            self.marcar_como_lida(usuario_id, notificacao_id)
            return atualizado
        raise ErroValidacao(f"Ação desconhecida: {acao!r}")

    def _usuario_por_login_aproximado(self, login):
        termo = (login or '').lower()
        if not termo:
            return None
        for usuario in self.usuarios:
            if termo in (usuario.get('email') or '').lower() or termo in (usuario.get('nome') or '').lower():
                return usuario
        return None


class AgendadorAlertas:
    """Executa a varredura de alertas a cada `intervalo` segundos em uma thread daemon."""

    def __init__(self, controlador, intervalo=60):
        self.controlador = controlador
        self.intervalo = intervalo
        self._timer = None
        self._ativo = False

    def _executar(self):
        if not self._ativo:
            return
        try:
            self.controlador.verificar_alertas()
        except Exception as e:
            logger.error(f"ERRO na varredura de alertas: {e}")
        self._agendar()

    def _agendar(self):
        self._timer = threading.Timer(self.intervalo, self._executar)
        self._timer.daemon = True
        self._timer.start()

    def iniciar(self):
        self._ativo = True
        self.controlador.verificar_alertas()
        self._agendar()

    def parar(self):
        self._ativo = False
        if self._timer:
            self._timer.cancel()

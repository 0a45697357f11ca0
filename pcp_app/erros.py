# pcp_app/erros.py


class ErroPCP(Exception):
    """Erro base do sistema. Cada subclasse define o status HTTP devolvido pela API."""
    codigo_http = 500

    def __init__(self, mensagem=None):
        super().__init__(mensagem or self.__class__.__doc__)
        self.mensagem = mensagem or self.__class__.__doc__


class PermissaoNegada(ErroPCP):
    """Acesso negado."""
    codigo_http = 403


class ErroValidacao(ErroPCP):
    """Dados inválidos."""
    codigo_http = 400


class TransicaoIndisponivel(ErroValidacao):
    """Nenhuma ação disponível para esta etapa."""
    codigo_http = 409


class RegistroNaoEncontrado(ErroPCP):
    """Registro não encontrado."""
    codigo_http = 404


class ErroPersistencia(ErroPCP):
    """Falha ao gravar no armazenamento remoto."""
    codigo_http = 502


class CarregamentoExpirado(ErroPCP):
    """O carregamento excedeu o tempo limite."""
    codigo_http = 504

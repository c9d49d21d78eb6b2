class RolehopError(RuntimeError):
    """
    Raiz de todos os erros do rolehop. O CLI converte qualquer um deles em
    diagnóstico + exit code != 0.
    """


class ConfigError(RolehopError):
    """Arquivo de credenciais ausente, profile inexistente ou valor inválido."""


class AuthError(RolehopError):
    """Credenciais rejeitadas pela AWS (verificação ou assume-role)."""


class InteractiveAbort(RolehopError):
    """Prompt de MFA interrompido (Ctrl-C / EOF)."""


class ProvisionError(RolehopError):
    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code

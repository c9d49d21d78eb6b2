import typer

from rolehop.core.engine.credential_resolver import build_resolver
from rolehop.core.engine.role_engine import now_ms
from rolehop.core.errors import AuthError, ConfigError, InteractiveAbort, RolehopError
from rolehop.core.models import ResolvedIdentity

from ..params import AuthParams
from .console import BOLD, CYAN, GREEN, MAGENTA, RED, RESET, RULE, YELLOW


def _hints(error: RolehopError) -> list[str]:
    if isinstance(error, ConfigError):
        return [
            "O arquivo ~/.aws/credentials existe (`aws configure`)",
            "O profile pedido (--profile / AWS_PROFILE) está no arquivo",
            "O source_profile aponta para um profile com chaves de longo prazo",
        ]
    if isinstance(error, InteractiveAbort):
        return ["O código MFA foi informado (o prompt foi interrompido)"]
    return [
        "As chaves do profile não foram desativadas/rotacionadas",
        "A role permite sts:AssumeRole a partir do profile de origem",
        "O código MFA ainda era válido quando foi digitado",
        "As variáveis de ambiente de credenciais estão corretas",
    ]


def print_failure(error: RolehopError) -> None:
    title = "FAILED TO RESOLVE AWS IDENTITY"
    if isinstance(error, ConfigError):
        title = "AWS CREDENTIAL CONFIGURATION ERROR"
    elif isinstance(error, AuthError):
        title = "AWS CREDENTIALS REJECTED"

    lines = [
        "",
        RULE,
        f"{RED}{BOLD}{title}{RESET}",
        RULE,
        "",
        f"{MAGENTA}Detalhes:{RESET}",
        f"  {error}",
        "",
        f"{YELLOW}Verifique se:{RESET}",
        *[f"  - {hint}" for hint in _hints(error)],
        "",
        RULE,
        f"{RED}{BOLD}ABORTING: nenhuma ação será executada.{RESET}",
        RULE,
        "",
    ]
    typer.echo("\n".join(lines), err=True)


def print_authenticated(resolved: ResolvedIdentity) -> None:
    line = f"{GREEN}[+]{RESET} Authenticated as {CYAN}{resolved.arn}{RESET} ({resolved.source})"
    minutes = resolved.minutes_left(now_ms())
    if minutes is not None:
        line += f"; valid for {minutes} minutes"
    typer.echo(line, err=True)


def resolve_identity(params: AuthParams, quiet: bool = False) -> ResolvedIdentity:
    """
    Resolve as credenciais ou aborta o comando com exit code 1.

    Falha de credencial é sempre fatal: não há identidade padrão segura.
    """
    try:
        resolver = build_resolver(region=params.region)
        resolved = resolver.resolve(
            profile=params.profile,
            chain_role_arn=params.chain_role_arn,
        )
    except RolehopError as e:
        print_failure(e)
        raise typer.Exit(code=1)

    if not quiet:
        print_authenticated(resolved)

    return resolved

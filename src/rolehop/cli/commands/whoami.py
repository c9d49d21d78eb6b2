import json

import typer
import typer_di
import yaml

from rolehop.core.engine.role_engine import now_ms
from rolehop.core.models import ResolvedIdentity

from ..params import AuthParams, auth_params, output_params
from .auth import resolve_identity
from .console import BOLD, CYAN, GREEN, RESET, RULE


def _print_identity(resolved: ResolvedIdentity, output: str) -> None:
    identity_dict = resolved.to_dict()

    if output == "json":
        typer.echo(json.dumps(identity_dict, indent=2, ensure_ascii=False))
        return

    if output == "yaml":
        typer.echo(yaml.safe_dump(identity_dict, sort_keys=False, allow_unicode=True))
        return

    profile = resolved.profile or "(no profile / env creds)"
    region = resolved.identity.region or "(no default region)"
    minutes = resolved.minutes_left(now_ms())
    validity = f"{minutes} minutes" if minutes is not None else "(long-term keys)"

    lines = [
        "",
        RULE,
        f"{CYAN}{BOLD}ROLEHOP: AWS Identity Context{RESET}",
        RULE,
        f"{CYAN}{BOLD}ACCOUNT:{RESET} {resolved.account}",
        f"{CYAN}{BOLD}ARN:    {RESET} {resolved.arn}",
        f"{CYAN}{BOLD}PROFILE:{RESET} {profile}",
        f"{CYAN}{BOLD}REGION: {RESET} {region}",
        f"{CYAN}{BOLD}SOURCE: {RESET} {resolved.source}",
        f"{CYAN}{BOLD}VALID:  {RESET} {validity}",
        RULE,
        f"{GREEN}{BOLD}Identity OK.{RESET}",
        RULE,
        "",
    ]
    typer.echo("\n".join(lines))


def whoami(
    auth: AuthParams = typer_di.Depends(auth_params),
    output: str = typer_di.Depends(output_params),
) -> None:
    """
    Mostra a identidade AWS resolvida (Account ID, ARN, origem das credenciais).
    """
    resolved = resolve_identity(auth, quiet=True)
    _print_identity(resolved, output)

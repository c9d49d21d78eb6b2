import json
from typing import Any, Dict, Optional

import typer
import typer_di
import yaml

from rolehop.core.config import load_settings
from rolehop.core.credential_store import CredentialStore
from rolehop.core.engine.role_engine import now_ms
from rolehop.core.models import CachedSession

from ..params import output_params
from .console import BOLD, CYAN, GREEN, GREY, RESET, RULE, YELLOW

cache_app = typer_di.TyperDI(help="Inspect or clear the cached role session.")


def _store() -> CredentialStore:
    settings = load_settings()
    return CredentialStore(settings.paths.credentials_file, settings.paths.cache_file)


def _describe(session: Optional[CachedSession]) -> Dict[str, Any]:
    # Nunca inclui chaves/tokens: só metadados
    if session is None:
        return {"cached": False}

    settings = load_settings()
    now = now_ms()
    return {
        "cached": True,
        "profile": session.profile,
        "access_key_id": session.access_key_id[:8] + "***",
        "expire_time": session.expire_time,
        "minutes_left": max(0, session.remaining_ms(now) // 60000),
        "usable": session.is_usable(now, settings.credentials.cache_margin_seconds),
    }


@cache_app.command("show")
def show(output: str = typer_di.Depends(output_params)) -> None:
    """
    Mostra o profile/role em cache e quanto tempo de sessão resta.
    """
    info = _describe(_store().load_cache())

    if output == "json":
        typer.echo(json.dumps(info, indent=2, ensure_ascii=False))
        return

    if output == "yaml":
        typer.echo(yaml.safe_dump(info, sort_keys=False, allow_unicode=True))
        return

    if not info["cached"]:
        typer.echo(f"{GREY}(no cached session){RESET}")
        return

    status = f"{GREEN}usable{RESET}" if info["usable"] else f"{YELLOW}expiring / expired{RESET}"
    typer.echo(
        "\n".join(
            [
                RULE,
                f"{CYAN}{BOLD}PROFILE:{RESET} {info['profile']}",
                f"{CYAN}{BOLD}KEY:    {RESET} {info['access_key_id']}",
                f"{CYAN}{BOLD}LEFT:   {RESET} {info['minutes_left']} minutes",
                f"{CYAN}{BOLD}STATUS: {RESET} {status}",
                RULE,
            ]
        )
    )


@cache_app.command("clear")
def clear() -> None:
    """
    Apaga o cache de sessão (idempotente).
    """
    _store().delete_cache()
    typer.echo(f"{GREEN}[+]{RESET} Session cache cleared.")

from pathlib import Path
from typing import List, Optional

import typer
import typer_di

from rolehop.core.config import load_settings
from rolehop.core.engine.provision_engine import provision
from rolehop.core.errors import ConfigError, ProvisionError
from rolehop.core.models import ResolvedIdentity
from rolehop.core.template_engine import load_template, write_render

from ..params import AuthParams, auth_params
from .auth import resolve_identity
from .console import BOLD, CYAN, GREEN, GREY, RED, RESET, RULE


def _render(file: Path, resolved: ResolvedIdentity, render_path: Optional[Path]) -> Path:
    settings = load_settings()
    out_dir = render_path or Path(settings.provision.render_path)

    typer.echo(f"{GREEN}[+]{RESET} Evaluating {file} into {out_dir}/", err=True)

    try:
        files = load_template(file, identity=resolved)
        written: List[Path] = write_render(
            files, out_dir, clean_before_render=settings.provision.clean_before_render
        )
    except ConfigError as e:
        typer.echo(f"{RED}{BOLD}[!] {e}{RESET}", err=True)
        raise typer.Exit(code=1)

    for path in written:
        typer.echo(f"  {GREY}{path}{RESET}", err=True)

    return out_dir


def _run(command: str, out_dir: Path, resolved: ResolvedIdentity, **flags: bool) -> None:
    settings = load_settings()
    try:
        provision(
            command,
            resolved,
            cwd=out_dir,
            binary=settings.provision.terraform_bin,
            **flags,
        )
    except ProvisionError as e:
        typer.echo(f"{RED}{BOLD}[!] {e}{RESET}", err=True)
        raise typer.Exit(code=e.exit_code)

    typer.echo(f"{GREEN}{BOLD}[+] Successfully ran {command}{RESET}", err=True)


_FILE_ARG = typer.Argument(..., help="Configuration file (YAML/JSON + Jinja2) to render.")
_RENDER_PATH = typer.Option(None, "--render-path", help="Output directory. Default: ./render")


def render(
    file: Path = _FILE_ARG,
    render_path: Optional[Path] = _RENDER_PATH,
    auth: AuthParams = typer_di.Depends(auth_params),
) -> None:
    """
    Renderiza a configuração em arquivos *.tf.json, sem chamar o Terraform.
    """
    resolved = resolve_identity(auth)
    out_dir = _render(file, resolved, render_path)

    typer.echo(f"\n{RULE}\n{CYAN}{BOLD}Render OK:{RESET} {out_dir}\n{RULE}", err=True)


def plan(
    file: Path = _FILE_ARG,
    render_path: Optional[Path] = _RENDER_PATH,
    skip_init: bool = typer.Option(False, "--skip-init", "-s", help="Skip provider initialization."),
    skip_refresh: bool = typer.Option(False, "--skip-refresh", help="Pass -refresh=false."),
    auth: AuthParams = typer_di.Depends(auth_params),
) -> None:
    """
    Renderiza e roda `terraform plan` com as credenciais resolvidas.
    """
    resolved = resolve_identity(auth)
    out_dir = _render(file, resolved, render_path)
    _run("plan", out_dir, resolved, skip_init=skip_init, skip_refresh=skip_refresh)


def apply(
    file: Path = _FILE_ARG,
    render_path: Optional[Path] = _RENDER_PATH,
    auto_approve: bool = typer.Option(
        False, "--auto-approve", "-y", help="Skip the apply confirmation."
    ),
    skip_init: bool = typer.Option(False, "--skip-init", "-s", help="Skip provider initialization."),
    skip_refresh: bool = typer.Option(False, "--skip-refresh", help="Pass -refresh=false."),
    auth: AuthParams = typer_di.Depends(auth_params),
) -> None:
    """
    Renderiza e roda `terraform apply` com as credenciais resolvidas.
    """
    resolved = resolve_identity(auth)
    out_dir = _render(file, resolved, render_path)
    _run(
        "apply",
        out_dir,
        resolved,
        skip_init=skip_init,
        auto_approve=auto_approve,
        skip_refresh=skip_refresh,
    )


def destroy(
    file: Path = _FILE_ARG,
    render_path: Optional[Path] = _RENDER_PATH,
    auto_approve: bool = typer.Option(
        False, "--auto-approve", "-y", help="Skip the destroy confirmation."
    ),
    skip_init: bool = typer.Option(False, "--skip-init", "-s", help="Skip provider initialization."),
    auth: AuthParams = typer_di.Depends(auth_params),
) -> None:
    """
    Renderiza e roda `terraform destroy` com as credenciais resolvidas.
    """
    resolved = resolve_identity(auth)
    out_dir = _render(file, resolved, render_path)
    _run("destroy", out_dir, resolved, skip_init=skip_init, auto_approve=auto_approve)

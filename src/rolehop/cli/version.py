from importlib.metadata import PackageNotFoundError, version

import typer

DIST_NAME = "rolehop"


def get_version() -> str:
    """Versão instalada do rolehop ("unknown" quando rodando direto do src/)."""
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return "unknown"


def version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"{DIST_NAME} {get_version()}")
    raise typer.Exit()

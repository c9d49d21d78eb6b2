import shlex

import typer
import typer_di

from ..params import AuthParams, auth_params
from .auth import resolve_identity


def env(auth: AuthParams = typer_di.Depends(auth_params)) -> None:
    """
    Imprime `export` das credenciais resolvidas, para uso com eval:

        eval "$(rolehop env --profile ops)"
    """
    resolved = resolve_identity(auth)

    exports = resolved.environment()
    if not exports:
        # Contexto ambiente: já está no shell, nada a exportar.
        typer.echo("# ambient credentials in use; nothing to export", err=True)
        return

    typer.echo("unset AWS_PROFILE")
    for key, value in exports.items():
        typer.echo(f"export {key}={shlex.quote(value)}")

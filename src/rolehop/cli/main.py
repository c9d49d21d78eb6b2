from typing import Optional

import typer
import typer_di

from rolehop.core.logging_utils import configure_logging

from .commands import apply, cache_app, destroy, env, plan, render, whoami
from .version import version_callback

app = typer_di.TyperDI(
    help="Resolve, verify and cache AWS credentials, then render and run Terraform.",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show the version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log at INFO level."),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Python logging level (default: $ROLEHOP_LOG_LEVEL or WARNING).",
    ),
) -> None:
    configure_logging(log_level or ("INFO" if verbose else None))


app.command()(whoami)
app.command()(env)
app.command()(render)
app.command()(plan)
app.command()(apply)
app.command()(destroy)
app.add_typer(cache_app, name="cache")


if __name__ == "__main__":
    app()

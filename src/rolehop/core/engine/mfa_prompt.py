import logging
from typing import Callable, Optional

import typer

from ..errors import InteractiveAbort

logger = logging.getLogger(__name__)

Reader = Callable[[str], str]


_ENTER = ("\r", "\n")
_BACKSPACE = ("\x7f", "\b")
_CTRL_C = "\x03"
_CTRL_D = "\x04"


def _terminal_reader(message: str) -> str:
    """
    Lê o token tecla a tecla, ecoando `*` no lugar de cada caractere.
    Tudo vai para stderr: o stdout de `rolehop env` é consumido por eval.
    """
    typer.echo(f"{message}: ", nl=False, err=True)

    chars: list[str] = []
    while True:
        ch = typer.getchar()

        if ch in _ENTER:
            typer.echo("", err=True)
            return "".join(chars)
        if ch == _CTRL_C:
            raise KeyboardInterrupt
        if not ch or ch == _CTRL_D:
            raise EOFError
        if ch in _BACKSPACE:
            if chars:
                chars.pop()
                typer.echo("\b \b", nl=False, err=True)
            continue

        chars.append(ch)
        typer.echo("*", nl=False, err=True)


class MfaPrompt:
    """
    Prompt bloqueante para o código MFA.

    Repete indefinidamente enquanto a entrada vier vazia (caminho interativo,
    sem timeout). Ctrl-C / EOF viram InteractiveAbort.
    """

    def __init__(self, reader: Optional[Reader] = None) -> None:
        self._reader = reader or _terminal_reader

    def prompt(self, serial: str) -> str:
        message = f"Enter MFA code for {serial}"

        while True:
            try:
                token = self._reader(message)
            except (typer.Abort, KeyboardInterrupt, EOFError) as e:
                raise InteractiveAbort(f"MFA prompt for {serial} was interrupted.") from e

            token = (token or "").strip()
            if token:
                return token

            logger.debug("Empty MFA token for %s, prompting again", serial)

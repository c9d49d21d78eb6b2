import logging
import os
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from ..errors import ProvisionError
from ..models import ResolvedIdentity

logger = logging.getLogger(__name__)

COMMANDS = ("init", "plan", "apply", "destroy")


def build_env(identity: ResolvedIdentity, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Ambiente do subprocesso: ambiente atual + contexto resolvido por cima."""
    env = dict(os.environ if base is None else base)
    if identity.context is not None:
        env.pop("AWS_PROFILE", None)
        env.update(identity.environment())
    return env


def run_terraform(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: str | Path,
    env: Mapping[str, str],
    binary: str = "terraform",
) -> None:
    """
    Roda `<binary> <command> [args]` em cwd, herdando stdin/stdout/stderr.

    Raises:
        ProvisionError: binário não encontrado ou exit code != 0
    """
    cmd = [binary, command, *args]
    logger.info("Running %s in %s", " ".join(cmd), cwd)

    try:
        result = subprocess.run(cmd, cwd=str(cwd), env=dict(env), check=False)
    except FileNotFoundError as e:
        raise ProvisionError(
            f"Provisioning binary {binary!r} not found. Install Terraform or set ROLEHOP_TERRAFORM_BIN."
        ) from e

    if result.returncode != 0:
        raise ProvisionError(
            f"Terraform {command} failed with status code {result.returncode}",
            exit_code=result.returncode,
        )


def provision(
    command: str,
    identity: ResolvedIdentity,
    *,
    cwd: str | Path,
    binary: str = "terraform",
    skip_init: bool = False,
    auto_approve: bool = False,
    skip_refresh: bool = False,
) -> None:
    """
    Executa init (a não ser que skip_init) e depois o comando pedido.

    Só é chamado com uma identidade já verificada: é o resolver que garante isso.
    """
    if command not in COMMANDS:
        raise ValueError(f"Unsupported terraform command: {command}")

    env = build_env(identity)

    if not skip_init and command != "init":
        run_terraform("init", cwd=cwd, env=env, binary=binary)

    args: List[str] = []
    if auto_approve and command in ("apply", "destroy"):
        args.append("-auto-approve")
    if skip_refresh and command in ("plan", "apply"):
        args.append("-refresh=false")

    run_terraform(command, args, cwd=cwd, env=env, binary=binary)

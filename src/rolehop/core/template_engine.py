import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jinja2 import Environment, StrictUndefined, TemplateError

from .errors import ConfigError
from .models import ResolvedIdentity

logger = logging.getLogger(__name__)

RENDER_SUFFIX = ".tf.json"


def _envvar(name: str) -> Any:
    # Variável ausente vira `false` no YAML final, não string vazia
    return os.environ.get(name, False)


def _path() -> str:
    return os.getcwd()


env = Environment(undefined=StrictUndefined)
env.globals["envvar"] = _envvar
env.globals["path"] = _path


def load_template(path: str | Path, identity: Optional[ResolvedIdentity] = None) -> Dict[str, Any]:
    """
    Lê o arquivo de configuração (YAML ou JSON; YAML já é superset), renderizando
    antes como Jinja2. Disponível no template:

    - envvar("NOME"): valor da variável de ambiente ou false
    - path(): diretório atual
    - identity.account / identity.arn / identity.user_id / identity.region
    """
    file = Path(path)
    if not file.exists():
        raise ConfigError(f"{file} does not exist.")

    ctx: Dict[str, Any] = {"identity": _identity_ctx(identity)}

    try:
        rendered = env.from_string(file.read_text(encoding="utf-8")).render(**ctx)
        data = yaml.safe_load(rendered)
    except (TemplateError, yaml.YAMLError) as e:
        raise ConfigError(f"Error evaluating {file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"{file} must evaluate to a mapping of file name -> document, "
            f"got {type(data).__name__}."
        )

    # cada chave vira um arquivo <nome>.tf.json
    return {_render_name(str(name)): doc for name, doc in data.items()}


def _identity_ctx(identity: Optional[ResolvedIdentity]) -> Dict[str, Any]:
    if identity is None:
        return {"account": False, "arn": False, "user_id": False, "region": False}
    return {
        "account": identity.identity.account,
        "arn": identity.identity.arn,
        "user_id": identity.identity.user_id,
        "region": identity.identity.region or False,
    }


def _render_name(name: str) -> str:
    if Path(name).name != name:
        raise ConfigError(f"Rendered file name must not contain a path: {name!r}")
    return name if name.endswith(RENDER_SUFFIX) else name + RENDER_SUFFIX


def write_render(
    files: Dict[str, Any],
    render_path: str | Path,
    clean_before_render: bool = False,
) -> List[Path]:
    """
    Grava cada documento como JSON (indentação 4) em render_path.
    Com clean_before_render, remove os *.tf.json que já estavam lá.
    """
    out_dir = Path(render_path)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"render path {out_dir} could not be created: {e}") from e

    if clean_before_render:
        for old in out_dir.glob(f"*{RENDER_SUFFIX}"):
            old.unlink()

    written: List[Path] = []
    for name, doc in files.items():
        target = out_dir / name
        target.write_text(json.dumps(doc, indent=4), encoding="utf-8")
        logger.debug("Rendered %s", target)
        written.append(target)

    return written

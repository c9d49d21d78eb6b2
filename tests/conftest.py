import sys
from pathlib import Path

import pytest


# Garante que `src/` está no PYTHONPATH quando rodar pytest no repo.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


from rolehop.core.config import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path: Path):
    """
    Cada teste roda com arquivos em tmp_path e sem credenciais herdadas
    do shell de quem roda o pytest.
    """
    for var in (
        "AWS_PROFILE",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "ASSUME_ROLE_CHAIN_ARN",
        "ROLEHOP_LOG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("ROLEHOP_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    monkeypatch.setenv("ROLEHOP_CACHE_FILE", str(tmp_path / "profile_cache.json"))
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    # .env do diretório atual não pode vazar para os testes
    monkeypatch.chdir(tmp_path)

    reset_settings()
    yield tmp_path
    reset_settings()

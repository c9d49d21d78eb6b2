from dataclasses import dataclass, replace
from typing import Dict, Optional


# Variáveis de ambiente que representam o contexto "instalado" no processo.
ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"
ENV_PROFILE = "AWS_PROFILE"

AMBIENT_CREDENTIAL_VARS = (
    ENV_ACCESS_KEY_ID,
    ENV_SECRET_ACCESS_KEY,
    ENV_SESSION_TOKEN,
    ENV_PROFILE,
)


@dataclass(frozen=True)
class CredentialContext:
    """
    Conjunto de credenciais ativo (chaves de longo prazo ou sessão temporária).

    É um valor imutável: o resolver passa o contexto adiante explicitamente,
    e quem precisa dele num subprocesso usa `as_env()`.
    """

    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None
    region: Optional[str] = None

    def with_region(self, region: Optional[str]) -> "CredentialContext":
        return replace(self, region=region)

    def as_env(self) -> Dict[str, str]:
        env = {
            ENV_ACCESS_KEY_ID: self.access_key_id,
            ENV_SECRET_ACCESS_KEY: self.secret_access_key,
            ENV_SESSION_TOKEN: self.session_token or "",
        }
        if self.region:
            env["AWS_REGION"] = self.region
            env["AWS_DEFAULT_REGION"] = self.region
        return env

    def __repr__(self) -> str:
        return (
            f"CredentialContext(access_key_id={self.access_key_id[:8]}***, "
            f"session_token={'yes' if self.session_token else 'no'}, "
            f"region={self.region})"
        )

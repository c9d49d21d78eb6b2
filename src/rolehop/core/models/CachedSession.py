import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .CredentialContext import CredentialContext


# Margem de segurança: uma sessão que expira em menos de 45 minutos não é
# reaproveitada, para não expirar no meio de um apply longo.
CACHE_MARGIN_SECONDS = 45 * 60


@dataclass(frozen=True)
class CachedSession:
    """
    Sessão temporária persistida em disco para reuso entre execuções.

    `profile` é a chave do cache: o nome do profile resolvido, ou o ARN da
    role encadeada quando houve chain hop.
    """

    access_key_id: str
    secret_access_key: str
    session_token: str
    expire_time: int  # epoch em milissegundos
    profile: str
    expired: bool = False

    def remaining_ms(self, now_ms: int) -> int:
        return self.expire_time - now_ms

    def is_usable(self, now_ms: int, margin_seconds: int = CACHE_MARGIN_SECONDS) -> bool:
        # Exatamente na borda (now + margem) já conta como inutilizável.
        return not self.expired and self.expire_time > now_ms + margin_seconds * 1000

    def matches(self, key: str) -> bool:
        return self.profile == key

    def to_context(self, region: Optional[str] = None) -> CredentialContext:
        return CredentialContext(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            region=region,
        )

    @classmethod
    def from_context(
        cls, context: CredentialContext, expire_time: int, profile: str
    ) -> "CachedSession":
        return cls(
            access_key_id=context.access_key_id,
            secret_access_key=context.secret_access_key,
            session_token=context.session_token or "",
            expire_time=int(expire_time),
            profile=profile,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessKeyId": self.access_key_id,
            "secretAccessKey": self.secret_access_key,
            "sessionToken": self.session_token,
            "expireTime": self.expire_time,
            "expired": self.expired,
            "profile": self.profile,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedSession":
        """
        Monta a sessão a partir do JSON do cache.
        Levanta ValueError se faltar campo ou vier tipo errado.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Cache precisa ser um objeto JSON, veio {type(data).__name__}")

        try:
            access_key_id = data["accessKeyId"]
            secret_access_key = data["secretAccessKey"]
            session_token = data.get("sessionToken") or ""
            expire_time = data["expireTime"]
            profile = data["profile"]
        except KeyError as e:
            raise ValueError(f"Campo ausente no cache: {e}") from e

        for field_name, value in (
            ("accessKeyId", access_key_id),
            ("secretAccessKey", secret_access_key),
            ("profile", profile),
        ):
            if not isinstance(value, str) or not value:
                raise ValueError(f"Campo inválido no cache: {field_name}")

        # bool é subclasse de int, então precisa ser excluído explicitamente
        if isinstance(expire_time, bool) or not isinstance(expire_time, (int, float)):
            raise ValueError("Campo inválido no cache: expireTime")
        # json.loads aceita Infinity/NaN/1e400, e int() falharia com OverflowError
        if not math.isfinite(expire_time):
            raise ValueError("Campo inválido no cache: expireTime não é finito")

        expired = data.get("expired", False)
        if not isinstance(expired, bool):
            raise ValueError("Campo inválido no cache: expired")

        return cls(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=str(session_token),
            expire_time=int(expire_time),
            profile=profile,
            expired=expired,
        )

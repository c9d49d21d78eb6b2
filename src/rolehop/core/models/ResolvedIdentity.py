from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .AwsIdentity import AwsIdentity
from .CredentialContext import CredentialContext


# De onde veio a identidade final
SOURCE_AMBIENT = "ambient"
SOURCE_CACHE = "cache"
SOURCE_DIRECT = "direct"
SOURCE_ASSUMED = "assumed"
SOURCE_CHAINED = "chained"


@dataclass
class ResolvedIdentity:
    """
    Resultado do resolver. É a única coisa que o CLI recebe de volta.

    `context` é None quando a cadeia padrão do boto3 (ambiente/instância) foi
    usada sem alterações; nesse caso não há nada a exportar.
    """

    identity: AwsIdentity
    source: str
    context: Optional[CredentialContext] = field(default=None, repr=False)
    profile: Optional[str] = None
    verified: bool = True
    expire_time: Optional[int] = None  # epoch ms; None para chaves de longo prazo

    def minutes_left(self, now_ms: int) -> Optional[int]:
        if self.expire_time is None:
            return None
        return max(0, (self.expire_time - now_ms) // 60000)

    @property
    def account(self) -> str:
        return self.identity.account

    @property
    def arn(self) -> str:
        return self.identity.arn

    def environment(self) -> Dict[str, str]:
        return self.context.as_env() if self.context else {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.identity.account,
            "arn": self.identity.arn,
            "user_id": self.identity.user_id,
            "region": self.identity.region,
            "profile": self.profile,
            "source": self.source,
            "verified": self.verified,
        }

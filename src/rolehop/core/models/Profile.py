from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from ..errors import ConfigError


@dataclass(frozen=True)
class DirectKeys:
    access_key_id: str
    secret_access_key: str


@dataclass(frozen=True)
class AssumedRole:
    role_arn: str
    source_profile: str
    mfa_serial: Optional[str] = None
    duration_seconds: Optional[int] = None


ProfileCredentials = Union[DirectKeys, AssumedRole]


@dataclass(frozen=True)
class Profile:
    """
    Entrada nomeada do arquivo de credenciais (~/.aws/credentials).

    `credentials` é resolvido uma única vez na carga:
    - par de chaves completo -> DirectKeys (sempre ganha)
    - role_arn + source_profile -> AssumedRole
    - nenhum dos dois -> None
    """

    name: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    role_arn: Optional[str] = None
    source_profile: Optional[str] = None
    mfa_serial: Optional[str] = None
    duration_seconds: Optional[int] = None
    credentials: Optional[ProfileCredentials] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "credentials", resolve_profile_credentials(self))

    @classmethod
    def from_section(cls, name: str, section: Mapping[str, str]) -> "Profile":
        def _get(key: str) -> Optional[str]:
            value = section.get(key)
            if value is None:
                return None
            value = value.strip()
            return value or None

        raw_duration = _get("duration_seconds")
        duration: Optional[int] = None
        if raw_duration is not None:
            try:
                duration = int(raw_duration)
            except ValueError:
                raise ConfigError(
                    f"Profile [{name}]: duration_seconds inválido: {raw_duration!r}"
                ) from None
            if duration <= 0:
                raise ConfigError(
                    f"Profile [{name}]: duration_seconds precisa ser positivo: {duration}"
                )

        return cls(
            name=name,
            access_key_id=_get("aws_access_key_id"),
            secret_access_key=_get("aws_secret_access_key"),
            role_arn=_get("role_arn"),
            source_profile=_get("source_profile"),
            mfa_serial=_get("mfa_serial"),
            duration_seconds=duration,
        )


def resolve_profile_credentials(profile: Profile) -> Optional[ProfileCredentials]:
    # Chaves de longo prazo têm precedência sobre assume-role quando ambos existem.
    if profile.access_key_id and profile.secret_access_key:
        return DirectKeys(
            access_key_id=profile.access_key_id,
            secret_access_key=profile.secret_access_key,
        )

    if profile.role_arn and profile.source_profile:
        return AssumedRole(
            role_arn=profile.role_arn,
            source_profile=profile.source_profile,
            mfa_serial=profile.mfa_serial,
            duration_seconds=profile.duration_seconds,
        )

    return None

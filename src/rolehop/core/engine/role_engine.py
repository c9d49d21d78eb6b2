"""STS AssumeRole: troca um contexto de origem por uma sessão temporária.

A expiração absoluta é calculada no relógio local (início da requisição +
duração efetiva), para que a comparação com "agora" no cache não dependa de
clock skew entre esta máquina e a AWS.
"""

from __future__ import annotations

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import AuthError
from ..models import CredentialContext
from .identity_engine import build_session

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 3600

_STS_CONFIG = Config(retries={"max_attempts": 1, "mode": "standard"})

_CODE_MAP = {
    "AccessDenied": "access_denied",
    "ExpiredTokenException": "token_expired",
    "InvalidClientTokenId": "invalid_source_keys",
    "SignatureDoesNotMatch": "invalid_source_keys",
    "MalformedPolicyDocument": "policy_error",
    "PackedPolicyTooLarge": "policy_too_large",
    "RegionDisabledException": "region_disabled",
    "ValidationError": "invalid_request",
}


class RoleAssumptionError(AuthError):
    """Falha no sts:AssumeRole."""

    def __init__(self, message: str, code: str = "sts_error") -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class MfaToken:
    serial: str
    token: str


@dataclass(frozen=True)
class AssumedCredentials:
    context: CredentialContext
    expire_time: int  # epoch ms, relógio local
    assumed_role_arn: str

    def __repr__(self) -> str:
        return (
            f"AssumedCredentials(context={self.context!r}, "
            f"expire_time={self.expire_time}, assumed_role_arn={self.assumed_role_arn})"
        )


def now_ms() -> int:
    return int(time.time() * 1000)


def make_session_name(prefix: str, clock: Callable[[], int] = now_ms) -> str:
    return sanitize_session_name(f"{prefix}_{clock()}")


def sanitize_session_name(name: str) -> str:
    """Sanitiza para o STS (2-64 chars, [\\w+=,.@-])."""
    safe = re.sub(r"[^\w+=,.@-]", "-", name)
    safe = re.sub(r"-+", "-", safe).strip("-")
    if len(safe) > 64:
        suffix = hashlib.sha256(name.encode()).hexdigest()[:8]
        safe = safe[:55] + "-" + suffix
    return safe if len(safe) >= 2 else "rolehop-" + safe


def _provider_lifetime_seconds(response: dict[str, Any]) -> Optional[float]:
    """
    Duração que a AWS realmente concedeu: Expiration - header Date da resposta.
    Ambos vêm do relógio da AWS, então a diferença independe do relógio local.
    """
    expiration = response.get("Credentials", {}).get("Expiration")
    date_header = (
        response.get("ResponseMetadata", {}).get("HTTPHeaders", {}).get("date")
    )
    if not isinstance(expiration, datetime) or not date_header:
        return None

    try:
        issued_at = parsedate_to_datetime(date_header)
    except (TypeError, ValueError):
        return None

    if expiration.tzinfo is None or issued_at.tzinfo is None:
        return None

    return (expiration - issued_at).total_seconds()


class StsRoleAssumer:
    def __init__(
        self,
        region: Optional[str] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.region = region
        self._clock = clock

    def _get_client(self, source: CredentialContext) -> Any:
        session = build_session(source, self.region)
        return session.client("sts", config=_STS_CONFIG)

    def assume(
        self,
        source: CredentialContext,
        role_arn: str,
        session_name_prefix: str,
        duration_seconds: Optional[int] = None,
        mfa: Optional[MfaToken] = None,
    ) -> AssumedCredentials:
        """
        Assume `role_arn` usando `source` como credencial de origem.

        Raises:
            RoleAssumptionError: se o STS recusar ou a chamada falhar
        """
        duration = duration_seconds or DEFAULT_DURATION_SECONDS
        session_name = make_session_name(session_name_prefix, self._clock)

        params: dict[str, Any] = {
            "RoleArn": role_arn,
            "RoleSessionName": session_name,
            "DurationSeconds": duration,
        }
        if mfa is not None:
            params["SerialNumber"] = mfa.serial
            params["TokenCode"] = mfa.token

        client = self._get_client(source)
        started_at = self._clock()

        try:
            response = client.assume_role(**params)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "Unknown")
            error_message = exc.response.get("Error", {}).get("Message", str(exc))

            logger.warning(
                "STS failed: role=%s, session=%s, error=%s: %s",
                role_arn,
                session_name,
                error_code,
                error_message,
            )
            raise RoleAssumptionError(
                f"Failed to assume role {role_arn}: {error_message}",
                code=_CODE_MAP.get(error_code, "sts_error"),
            ) from exc
        except BotoCoreError as exc:
            raise RoleAssumptionError(
                f"Failed to assume role {role_arn}: {exc}", code="transport_error"
            ) from exc

        creds = response["Credentials"]
        assumed = response.get("AssumedRoleUser", {})

        lifetime = float(duration)
        granted = _provider_lifetime_seconds(response)
        if granted is not None and 0 < granted < lifetime:
            lifetime = granted

        logger.info("Assumed role: %s, session=%s", role_arn, session_name)

        return AssumedCredentials(
            context=CredentialContext(
                access_key_id=creds["AccessKeyId"],
                secret_access_key=creds["SecretAccessKey"],
                session_token=creds["SessionToken"],
                region=source.region,
            ),
            expire_time=started_at + int(lifetime * 1000),
            assumed_role_arn=assumed.get("Arn", role_arn),
        )

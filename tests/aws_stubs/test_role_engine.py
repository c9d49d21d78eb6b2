"""AWS stub tests for STS AssumeRole (MFA params, local-clock expiry)."""

from datetime import datetime, timedelta, timezone

import boto3
import pytest
from botocore.stub import ANY, Stubber

from rolehop.core.engine import role_engine
from rolehop.core.engine.role_engine import MfaToken, RoleAssumptionError, StsRoleAssumer
from rolehop.core.models import CredentialContext

NOW = 1_700_000_000_000
ROLE_ARN = "arn:aws:iam::111111111111:role/Ops"
ISSUED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _response(lifetime: timedelta) -> dict:
    return {
        "Credentials": {
            "AccessKeyId": "ASIATEMPKEY12345",
            "SecretAccessKey": "temp-secret",
            "SessionToken": "temp-token",
            "Expiration": ISSUED + lifetime,
        },
        "AssumedRoleUser": {
            "AssumedRoleId": "AROAEXAMPLE:rolehop_assumerole",
            "Arn": "arn:aws:sts::111111111111:assumed-role/Ops/rolehop_assumerole",
        },
        "ResponseMetadata": {
            "HTTPHeaders": {"date": "Tue, 02 Jan 2024 03:04:05 GMT"},
        },
    }


def _assumer(monkeypatch, sts) -> StsRoleAssumer:
    assumer = StsRoleAssumer(region="us-east-1", clock=lambda: NOW)
    monkeypatch.setattr(assumer, "_get_client", lambda source: sts)
    return assumer


def _sts():
    return boto3.session.Session(region_name="us-east-1").client("sts")


SOURCE = CredentialContext("AKIABASE", "base-secret", region="us-east-1")


def test_assume_role_with_mfa(monkeypatch):
    sts = _sts()
    stubber = Stubber(sts)
    stubber.add_response(
        "assume_role",
        _response(timedelta(hours=1)),
        expected_params={
            "RoleArn": ROLE_ARN,
            "RoleSessionName": f"rolehop_assumerole_{NOW}",
            "DurationSeconds": 3600,
            "SerialNumber": "arn:aws:iam::222222222222:mfa/alice",
            "TokenCode": "123456",
        },
    )

    with stubber:
        assumed = _assumer(monkeypatch, sts).assume(
            SOURCE,
            ROLE_ARN,
            "rolehop_assumerole",
            duration_seconds=3600,
            mfa=MfaToken("arn:aws:iam::222222222222:mfa/alice", "123456"),
        )

    assert assumed.context.access_key_id == "ASIATEMPKEY12345"
    assert assumed.context.session_token == "temp-token"
    assert assumed.context.region == "us-east-1"
    assert assumed.expire_time == NOW + 3600 * 1000
    assert assumed.assumed_role_arn.endswith("assumed-role/Ops/rolehop_assumerole")


def test_expiry_uses_shorter_granted_lifetime(monkeypatch):
    # Pediu 2h, a role só permite 1h: conta 1h a partir do relógio local
    sts = _sts()
    stubber = Stubber(sts)
    stubber.add_response(
        "assume_role",
        _response(timedelta(hours=1)),
        expected_params={"RoleArn": ROLE_ARN, "RoleSessionName": ANY, "DurationSeconds": 7200},
    )

    with stubber:
        assumed = _assumer(monkeypatch, sts).assume(SOURCE, ROLE_ARN, "p", duration_seconds=7200)

    assert assumed.expire_time == NOW + 3600 * 1000


def test_default_duration_without_mfa(monkeypatch):
    sts = _sts()
    stubber = Stubber(sts)
    stubber.add_response(
        "assume_role",
        _response(timedelta(hours=1)),
        expected_params={"RoleArn": ROLE_ARN, "RoleSessionName": ANY, "DurationSeconds": 3600},
    )

    with stubber:
        _assumer(monkeypatch, sts).assume(SOURCE, ROLE_ARN, "p")


def test_assume_role_access_denied(monkeypatch):
    sts = _sts()
    stubber = Stubber(sts)
    stubber.add_client_error(
        "assume_role",
        service_error_code="AccessDenied",
        service_message="User is not authorized to perform: sts:AssumeRole",
        http_status_code=403,
    )

    with stubber, pytest.raises(RoleAssumptionError) as exc:
        _assumer(monkeypatch, sts).assume(SOURCE, ROLE_ARN, "p")

    assert exc.value.code == "access_denied"
    assert "not authorized" in str(exc.value)


def test_session_name_is_sanitized():
    name = role_engine.make_session_name("my prefix/with:bad chars", clock=lambda: NOW)
    assert name == f"my-prefix-with-bad-chars_{NOW}"

    long_name = role_engine.sanitize_session_name("x" * 100)
    assert len(long_name) == 64

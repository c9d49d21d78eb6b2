"""AWS stub tests for identity engine STS caller identity behavior."""

import boto3
import pytest
from botocore.stub import Stubber

from rolehop.core.engine import identity_engine
from rolehop.core.models import AwsIdentityError, CredentialContext


def _patch_session(monkeypatch, sts):
    created = []

    # Patch boto3.session.Session constructor used inside identity_engine
    class _FakeSession:
        def __init__(self, region_name=None, **kwargs):
            self.region_name = region_name
            self.kwargs = kwargs
            created.append(self)

        def client(self, name, config=None):
            assert name == "sts"
            return sts

    monkeypatch.setattr(identity_engine.boto3.session, "Session", _FakeSession)
    return created


def test_get_current_aws_identity_uses_sts(monkeypatch):
    session = boto3.session.Session(region_name="us-east-1")
    sts = session.client("sts")
    stubber = Stubber(sts)

    stubber.add_response(
        "get_caller_identity",
        {"Account": "123", "Arn": "arn:aws:sts::123:assumed-role/x/y", "UserId": "U"},
        expected_params={},
    )

    created = _patch_session(monkeypatch, sts)
    ctx = CredentialContext("ASIA1", "secret", "token", region="sa-east-1")

    with stubber:
        ident = identity_engine.get_current_aws_identity(ctx, region="us-east-1", profile="p")

    assert ident.account == "123"
    assert ident.profile == "p"
    # região do contexto tem precedência
    assert ident.region == "sa-east-1"
    assert created[0].kwargs == {
        "aws_access_key_id": "ASIA1",
        "aws_secret_access_key": "secret",
        "aws_session_token": "token",
    }


def test_get_current_aws_identity_rejected(monkeypatch):
    session = boto3.session.Session(region_name="us-east-1")
    sts = session.client("sts")
    stubber = Stubber(sts)

    stubber.add_client_error(
        "get_caller_identity",
        service_error_code="InvalidClientTokenId",
        service_message="The security token included in the request is invalid.",
        http_status_code=403,
    )

    _patch_session(monkeypatch, sts)

    with stubber, pytest.raises(AwsIdentityError):
        identity_engine.get_current_aws_identity(CredentialContext("AKIA", "bad"))


def test_sts_verifier_delegates(monkeypatch):
    seen = {}

    def fake(context=None, region=None, profile=None):
        seen.update(context=context, region=region, profile=profile)
        return "identity"

    monkeypatch.setattr(identity_engine, "get_current_aws_identity", fake)

    assert identity_engine.StsVerifier(region="eu-west-1").verify(None, profile="ops") == "identity"
    assert seen == {"context": None, "region": "eu-west-1", "profile": "ops"}

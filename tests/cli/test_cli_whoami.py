import json

from typer.testing import CliRunner

from rolehop.cli.main import app
from rolehop.core.errors import AuthError, ConfigError
from rolehop.core.models import AwsIdentity, CredentialContext, ResolvedIdentity


runner = CliRunner()


class _FakeResolver:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def resolve(self, profile=None, chain_role_arn=None):
        self.calls.append({"profile": profile, "chain_role_arn": chain_role_arn})
        if self.error is not None:
            raise self.error
        return self.result


def _resolved() -> ResolvedIdentity:
    return ResolvedIdentity(
        identity=AwsIdentity(
            account="123456789012",
            arn="arn:aws:sts::123456789012:assumed-role/Ops/rolehop",
            user_id="AROAX:rolehop",
            region="us-east-1",
            profile="ops",
        ),
        source="assumed",
        context=CredentialContext("ASIA1", "s3cr3t", "t0k3n", region="us-east-1"),
        profile="ops",
    )


def _patch_resolver(monkeypatch, fake):
    import rolehop.cli.commands.auth as auth

    seen = {}

    def build(region=None):
        seen["region"] = region
        return fake

    monkeypatch.setattr(auth, "build_resolver", build)
    return seen


def test_cli_whoami_json(monkeypatch):
    fake = _FakeResolver(result=_resolved())
    seen = _patch_resolver(monkeypatch, fake)

    res = runner.invoke(
        app,
        ["whoami", "--profile", "ops", "--region", "sa-east-1", "--chain-role-arn", "arn:x", "--json"],
    )

    assert res.exit_code == 0, res.output
    payload = json.loads(res.stdout)
    assert payload["account"] == "123456789012"
    assert payload["source"] == "assumed"
    assert payload["verified"] is True
    # segredo nunca aparece na saída
    assert "s3cr3t" not in res.output
    assert fake.calls == [{"profile": "ops", "chain_role_arn": "arn:x"}]
    assert seen["region"] == "sa-east-1"


def test_cli_whoami_text(monkeypatch):
    _patch_resolver(monkeypatch, _FakeResolver(result=_resolved()))

    res = runner.invoke(app, ["whoami"])

    assert res.exit_code == 0, res.output
    assert "arn:aws:sts::123456789012:assumed-role/Ops/rolehop" in res.output


def test_cli_whoami_rejected_credentials_exit_1(monkeypatch):
    _patch_resolver(monkeypatch, _FakeResolver(error=AuthError("InvalidClientTokenId")))

    res = runner.invoke(app, ["whoami", "--profile", "ops"])

    assert res.exit_code == 1
    assert "InvalidClientTokenId" in res.output
    assert "AWS CREDENTIALS REJECTED" in res.output


def test_cli_whoami_missing_profile_exit_1(monkeypatch):
    _patch_resolver(monkeypatch, _FakeResolver(error=ConfigError("AWS Profile [nope] isn't set.")))

    res = runner.invoke(app, ["whoami", "--profile", "nope"])

    assert res.exit_code == 1
    assert "AWS Profile [nope] isn't set." in res.output


def test_cli_version():
    res = runner.invoke(app, ["--version"])

    assert res.exit_code == 0
    assert res.output.startswith("rolehop ")


def test_cli_whoami_yaml_short_option(monkeypatch):
    _patch_resolver(monkeypatch, _FakeResolver(result=_resolved()))

    res = runner.invoke(app, ["whoami", "-o", "YAML"])

    assert res.exit_code == 0, res.output
    assert "account: '123456789012'" in res.stdout


def test_cli_whoami_rejects_two_formats(monkeypatch):
    fake = _FakeResolver(result=_resolved())
    _patch_resolver(monkeypatch, fake)

    res = runner.invoke(app, ["whoami", "--json", "--output", "yaml"])

    assert res.exit_code == 2
    assert fake.calls == []


def test_cli_whoami_rejects_unknown_format(monkeypatch):
    _patch_resolver(monkeypatch, _FakeResolver(result=_resolved()))

    res = runner.invoke(app, ["whoami", "--output", "xml"])

    assert res.exit_code == 2

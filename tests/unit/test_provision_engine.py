import subprocess
from pathlib import Path

import pytest

from rolehop.core.engine import provision_engine
from rolehop.core.errors import ProvisionError
from rolehop.core.models import AwsIdentity, CredentialContext, ResolvedIdentity


def _resolved(context=None) -> ResolvedIdentity:
    return ResolvedIdentity(
        identity=AwsIdentity("1", "arn:aws:sts::1:assumed-role/Ops/x", "U", "us-east-1", "ops"),
        source="assumed" if context else "ambient",
        context=context,
    )


class _Recorder:
    def __init__(self, returncodes=None):
        self.calls = []
        self.returncodes = list(returncodes or [])

    def __call__(self, cmd, cwd=None, env=None, check=None):
        self.calls.append({"cmd": cmd, "cwd": cwd, "env": env})
        code = self.returncodes.pop(0) if self.returncodes else 0
        return subprocess.CompletedProcess(cmd, code)


def test_build_env_overlays_resolved_context():
    ctx = CredentialContext("ASIA1", "s", "t", region="sa-east-1")
    env = provision_engine.build_env(
        _resolved(ctx), base={"AWS_PROFILE": "ops", "PATH": "/usr/bin"}
    )

    assert "AWS_PROFILE" not in env
    assert env["PATH"] == "/usr/bin"
    assert env["AWS_ACCESS_KEY_ID"] == "ASIA1"
    assert env["AWS_SESSION_TOKEN"] == "t"
    assert env["AWS_DEFAULT_REGION"] == "sa-east-1"


def test_build_env_ambient_is_untouched():
    base = {"AWS_PROFILE": "default"}
    assert provision_engine.build_env(_resolved(), base=base) == base


def test_apply_runs_init_then_apply_with_flags(monkeypatch, tmp_path: Path):
    rec = _Recorder()
    monkeypatch.setattr(provision_engine.subprocess, "run", rec)
    ctx = CredentialContext("ASIA1", "s", "t")

    provision_engine.provision(
        "apply",
        _resolved(ctx),
        cwd=tmp_path,
        binary="tf",
        auto_approve=True,
        skip_refresh=True,
    )

    assert [c["cmd"] for c in rec.calls] == [
        ["tf", "init"],
        ["tf", "apply", "-auto-approve", "-refresh=false"],
    ]
    assert all(c["cwd"] == str(tmp_path) for c in rec.calls)
    assert rec.calls[1]["env"]["AWS_ACCESS_KEY_ID"] == "ASIA1"


def test_plan_skip_init(monkeypatch, tmp_path: Path):
    rec = _Recorder()
    monkeypatch.setattr(provision_engine.subprocess, "run", rec)

    provision_engine.provision("plan", _resolved(), cwd=tmp_path, skip_init=True, auto_approve=True)

    # -auto-approve não se aplica a plan
    assert [c["cmd"] for c in rec.calls] == [["terraform", "plan"]]


def test_failed_init_stops_before_command(monkeypatch, tmp_path: Path):
    rec = _Recorder(returncodes=[3])
    monkeypatch.setattr(provision_engine.subprocess, "run", rec)

    with pytest.raises(ProvisionError) as exc:
        provision_engine.provision("destroy", _resolved(), cwd=tmp_path)

    assert exc.value.exit_code == 3
    assert len(rec.calls) == 1


def test_missing_binary(monkeypatch, tmp_path: Path):
    def boom(*args, **kwargs):
        raise FileNotFoundError("terraform")

    monkeypatch.setattr(provision_engine.subprocess, "run", boom)

    with pytest.raises(ProvisionError):
        provision_engine.run_terraform("plan", cwd=tmp_path, env={})


def test_unknown_command(tmp_path: Path):
    with pytest.raises(ValueError):
        provision_engine.provision("import", _resolved(), cwd=tmp_path)

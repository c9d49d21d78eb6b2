import pytest
import typer

from rolehop.core.engine import mfa_prompt as mfa
from rolehop.core.errors import InteractiveAbort

SERIAL = "arn:aws:iam::222222222222:mfa/alice"


def test_prompt_repeats_until_non_empty():
    answers = iter(["", "   ", " 123456 "])
    seen = []

    def reader(message):
        seen.append(message)
        return next(answers)

    token = mfa.MfaPrompt(reader=reader).prompt(SERIAL)

    assert token == "123456"
    assert len(seen) == 3
    assert seen[0] == f"Enter MFA code for {SERIAL}"


@pytest.mark.parametrize("exc", [typer.Abort(), KeyboardInterrupt(), EOFError()])
def test_interrupted_prompt_raises_interactive_abort(exc):
    def reader(message):
        raise exc

    with pytest.raises(InteractiveAbort):
        mfa.MfaPrompt(reader=reader).prompt(SERIAL)


def _keys(monkeypatch, text):
    keys = iter(text)
    monkeypatch.setattr(mfa.typer, "getchar", lambda: next(keys))


def test_terminal_reader_echoes_asterisks(monkeypatch, capsys):
    _keys(monkeypatch, "654321\r")

    assert mfa.MfaPrompt().prompt(SERIAL) == "654321"

    captured = capsys.readouterr()
    assert f"Enter MFA code for {SERIAL}: ******" in captured.err
    assert "654321" not in captured.err
    assert "654321" not in captured.out


def test_terminal_reader_backspace_and_reprompt(monkeypatch, capsys):
    # Enter vazio repete o prompt; backspace apaga o último dígito
    _keys(monkeypatch, "\r12x\x7f34\n")

    assert mfa.MfaPrompt().prompt(SERIAL) == "1234"
    assert capsys.readouterr().err.count("Enter MFA code for") == 2


@pytest.mark.parametrize("key", ["\x03", "\x04"])
def test_terminal_reader_interrupt(monkeypatch, key):
    _keys(monkeypatch, "12" + key)

    with pytest.raises(InteractiveAbort):
        mfa.MfaPrompt().prompt(SERIAL)

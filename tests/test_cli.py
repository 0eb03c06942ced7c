import dns.rcode
import pytest

from nsupdate_parser import cli
from nsupdate_parser.controller import UpdateController
from nsupdate_parser.models import NsupdateError, ValidationError

SCRIPT = (
    "; two batches, the second one never sent\n"
    "update add www.example.com. 300 IN A 192.0.2.1\n"
    "send\n"
    "update delete www.example.com. A\n"
)


class _Response:
    def __init__(self, rcode):
        self._rcode = rcode

    def rcode(self):
        return self._rcode


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "changes.txt"
    path.write_text(SCRIPT, encoding="utf-8")
    return path


def test_check_valid_script(clean_env, script, capsys):
    cli.main(["check", str(script)])
    out = capsys.readouterr().out
    assert "Directives: 3" in out
    assert "batch 2: 1 updates (no send)" in out
    assert "Script is valid." in out


def test_check_reports_parse_error(clean_env, tmp_path, capsys):
    path = tmp_path / "broken.txt"
    path.write_text("send\nupdate add example.com 60 IN A 192.0.2.1\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["check", str(path)])
    assert excinfo.value.code == 2
    assert "Parse error: line 2, column" in capsys.readouterr().err


def test_check_reports_validation_issues(clean_env, tmp_path, capsys):
    path = tmp_path / "ranges.txt"
    path.write_text("update add example.com. 60 IN SRV 10 99999 sip.example.com.\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["check", str(path)])
    assert excinfo.value.code == 2
    assert "line 1: port" in capsys.readouterr().out


def test_export_json_to_file(clean_env, script, tmp_path):
    output = tmp_path / "export" / "changes.json"
    cli.main(["export", str(script), "--format", "json", "--output", str(output)])
    assert '"directive": "delete"' in output.read_text(encoding="utf-8")


def test_template_vars_must_be_pairs(clean_env, script, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["check", str(script), "-e", "novalue"])
    assert excinfo.value.code == 2
    assert "KEY=VALUE" in capsys.readouterr().err


def test_apply_sends_only_terminated_batches(clean_env, script, monkeypatch, capsys):
    sent = []
    monkeypatch.setattr("dns.query.tcp", lambda update, *args, **kwargs: sent.append(update) or _Response(dns.rcode.NOERROR))
    cli.main(["apply", str(script), "--zone", "example.com", "--yes"])
    assert len(sent) == 1
    assert "Batches: 2, sent: 1, failed: 0, skipped: 1" in capsys.readouterr().out


def test_apply_counts_failures(clean_env, script, monkeypatch):
    monkeypatch.setattr("dns.query.tcp", lambda *args, **kwargs: _Response(dns.rcode.NOTAUTH))
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["apply", str(script), "--zone", "example.com.", "--yes"])
    assert excinfo.value.code == 2


def test_apply_requires_zone(config, script):
    with pytest.raises(NsupdateError, match="Zone name is required"):
        UpdateController(config).apply(script)


def test_apply_dry_run_sends_nothing(config, script, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("dry run must not send")

    monkeypatch.setattr("dns.query.tcp", fail)
    report = UpdateController(config).apply(script, zone="example.com.", dry_run=True)
    assert (report.batches, report.sent, report.skipped) == (2, 0, 1)


def test_apply_can_be_declined(config, script, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    report = UpdateController(config).apply(script, zone="example.com.")
    assert report.aborted
    assert report.sent == 0


def test_apply_validates_before_sending(config, tmp_path):
    path = tmp_path / "bad.txt"
    path.write_text("update add example.com. 60 IN SSHFP 9 1 abcd\nsend\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        UpdateController(config).apply(path, zone="example.com.", assume_yes=True)


def test_check_reports_oversized_number_as_parse_error(clean_env, tmp_path, capsys):
    path = tmp_path / "huge.txt"
    path.write_text("update add example.com. " + "9" * 5000 + " IN A 192.0.2.1\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["check", str(path)])
    assert excinfo.value.code == 2
    assert "Parse error: line 1, column 25" in capsys.readouterr().err

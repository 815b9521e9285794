import io
import json

import pytest

from genv import output
from genv.output import (
    ApplyResult,
    Envelope,
    PlanPackage,
    PlanResult,
    ScanResult,
    ServiceStatusEntry,
    ServiceStatusResult,
    StatusEntry,
    StatusResult,
)


def _render(envelope):
    buf = io.StringIO()
    output.write(buf, envelope)
    return buf.getvalue()


def test_write_produces_valid_json():
    text = _render(Envelope(version=output.SCHEMA_VERSION, command="apply", ok=True))
    assert json.loads(text) == {"version": "1", "command": "apply", "ok": True}


def test_write_version_field_present():
    got = json.loads(_render(Envelope(version=output.SCHEMA_VERSION, command="apply", ok=True)))
    assert got["version"] == output.SCHEMA_VERSION


def test_write_envelope_fields():
    got = json.loads(_render(Envelope(command="status", ok=False, errors=["something went wrong"])))
    assert got["command"] == "status"
    assert got["ok"] is False
    assert got["errors"] == ["something went wrong"]


def test_write_omits_nil_data():
    got = json.loads(_render(Envelope(command="scan", ok=True)))
    assert "data" not in got


def test_write_keeps_empty_payload_object():
    got = json.loads(_render(Envelope(command="scan", ok=True, data={})))
    assert got["data"] == {}


def test_write_omits_empty_errors():
    got = json.loads(_render(Envelope(command="apply", ok=True, data=ScanResult(added=3, skipped=1))))
    assert "errors" not in got


def test_write_plan_result_roundtrip():
    plan = PlanResult(
        to_install=[PlanPackage(id="git", manager="apt", cmd="sudo apt-get install -y git")],
        to_remove=[PlanPackage(id="htop", manager="apt")],
        unchanged=[PlanPackage(id="curl", manager="apt")],
    )
    got = json.loads(_render(Envelope(command="apply", ok=True, data=plan)))
    assert got["command"] == "apply"
    assert got["data"]["toInstall"] == [
        {"id": "git", "manager": "apt", "cmd": "sudo apt-get install -y git"}
    ]
    assert got["data"]["toRemove"] == [{"id": "htop", "manager": "apt"}]
    assert got["data"]["unresolved"] == 0
    assert "servicesToStart" not in got["data"]


def test_write_status_result():
    sr = StatusResult(
        entries=[
            StatusEntry(id="git", manager="apt", kind="ok", installed_version="2.43.0"),
            StatusEntry(id="htop", kind="missing"),
        ]
    )
    text = _render(Envelope(command="status", ok=True, data=sr))
    assert '"status"' in text
    got = json.loads(text)
    assert got["data"]["entries"][1] == {"id": "htop", "kind": "missing"}
    assert "envEntries" not in got["data"]


def test_write_scan_result():
    got = json.loads(_render(Envelope(command="scan", ok=True, data=ScanResult(added=42, skipped=7))))
    assert got["data"]["added"] == 42
    assert got["data"]["skipped"] == 7


def test_write_apply_result():
    result = ApplyResult(installed=["git", "neovim"], uninstalled=["htop"])
    got = json.loads(_render(Envelope(command="apply", ok=True, data=result)))
    assert got["data"]["installed"] == ["git", "neovim"]
    assert got["data"]["uninstalled"] == ["htop"]
    assert "envApplied" not in got["data"]


def test_service_status_running_false_is_kept():
    result = ServiceStatusResult(entries=[ServiceStatusEntry(name="db", kind="ok")])
    assert result.to_dict() == {"entries": [{"name": "db", "kind": "ok", "running": False}]}


def test_write_ends_with_newline():
    text = _render(Envelope(command="apply", ok=True))
    assert text.endswith("\n")
    assert text.count("\n") == 1


def test_write_escapes_html_characters():
    text = _render(Envelope(command="a<b>&c", ok=True))
    assert "\\u003c" in text and "\\u003e" in text and "\\u0026" in text
    assert json.loads(text)["command"] == "a<b>&c"


class _FailingStream:
    def write(self, _text):
        raise OSError("write error")


def test_write_writer_error():
    with pytest.raises(OSError, match="write error"):
        output.write(_FailingStream(), Envelope(command="test", ok=True))


def test_write_marshal_error_writes_nothing():
    buf = io.StringIO()
    with pytest.raises(TypeError):
        output.write(buf, Envelope(command="test", ok=True, data=object()))
    assert buf.getvalue() == ""
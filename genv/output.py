"""Stable JSON envelope types for machine-readable output."""

from __future__ import annotations

import json
from dataclasses import MISSING, dataclass, field, fields
from typing import Any, TextIO

SCHEMA_VERSION = "1"

# Omit modes: True drops zero values; "none" drops only None.
_OMIT_NONE = "none"


def _json(name: str, *, omitempty: bool | str = False, default: Any = MISSING, factory: Any = MISSING) -> Any:
    return field(
        default=default,
        default_factory=factory,
        metadata={"json": name, "omitempty": omitempty},
    )


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def _encode(value: Any) -> Any:
    if isinstance(value, _JSONRecord):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    return value


def _record_to_dict(record: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        omit = f.metadata.get("omitempty")
        if omit == _OMIT_NONE and value is None:
            continue
        if omit is True and _is_empty(value):
            continue
        out[f.metadata["json"]] = _encode(value)
    return out


class _JSONRecord:
    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form, honouring each field's omit rule."""
        return _record_to_dict(self)


@dataclass
class Envelope(_JSONRecord):
    """Top-level wrapper for every JSON response."""

    version: str = _json("version", default="")
    command: str = _json("command", default="")
    ok: bool = _json("ok", default=False)
    data: Any = _json("data", omitempty=_OMIT_NONE, default=None)
    errors: list[str] | None = _json("errors", omitempty=True, default=None)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form; data is dropped when None, errors when empty."""
        return _record_to_dict(self)


@dataclass
class PlanPackage(_JSONRecord):
    """One entry of a plan."""

    id: str = _json("id", default="")
    manager: str = _json("manager", omitempty=True, default="")
    cmd: str = _json("cmd", omitempty=True, default="")


@dataclass
class PlanResult(_JSONRecord):
    """Payload of apply in dry-run form."""

    to_install: list[PlanPackage] = _json("toInstall", factory=list)
    to_remove: list[PlanPackage] = _json("toRemove", factory=list)
    unchanged: list[PlanPackage] = _json("unchanged", factory=list)
    unresolved: int = _json("unresolved", default=0)
    services_to_start: list[str] = _json("servicesToStart", omitempty=True, factory=list)
    services_to_stop: list[str] = _json("servicesToStop", omitempty=True, factory=list)


@dataclass
class StatusEntry(_JSONRecord):
    """One package entry of a status report."""

    id: str = _json("id", default="")
    manager: str = _json("manager", omitempty=True, default="")
    kind: str = _json("kind", default="")
    spec_version: str = _json("specVersion", omitempty=True, default="")
    installed_version: str = _json("installedVersion", omitempty=True, default="")


@dataclass
class EnvStatusEntry(_JSONRecord):
    """One environment variable entry of a status report."""

    name: str = _json("name", default="")
    kind: str = _json("kind", default="")
    spec_value: str = _json("specValue", omitempty=True, default="")
    lock_value: str = _json("lockValue", omitempty=True, default="")
    sensitive: bool = _json("sensitive", omitempty=True, default=False)


@dataclass
class ShellStatusEntry(_JSONRecord):
    """One shell configuration entry of a status report."""

    kind: str = _json("kind", default="")
    entry_type: str = _json("entryType", default="")
    name: str = _json("name", default="")
    spec_value: str = _json("specValue", omitempty=True, default="")
    lock_value: str = _json("lockValue", omitempty=True, default="")


@dataclass
class ServiceStatusEntry(_JSONRecord):
    """One service entry of a status report."""

    name: str = _json("name", default="")
    kind: str = _json("kind", default="")
    running: bool = _json("running", default=False)


@dataclass
class StatusResult(_JSONRecord):
    """Payload of status."""

    entries: list[StatusEntry] = _json("entries", factory=list)
    env_entries: list[EnvStatusEntry] = _json("envEntries", omitempty=True, factory=list)
    shell_entries: list[ShellStatusEntry] = _json("shellEntries", omitempty=True, factory=list)
    service_entries: list[ServiceStatusEntry] = _json("serviceEntries", omitempty=True, factory=list)


@dataclass
class ScanResult(_JSONRecord):
    """Payload of scan."""

    added: int = _json("added", default=0)
    skipped: int = _json("skipped", default=0)


@dataclass
class ApplyResult(_JSONRecord):
    """Payload of a real apply run."""

    installed: list[str] = _json("installed", factory=list)
    uninstalled: list[str] = _json("uninstalled", factory=list)
    env_applied: list[str] = _json("envApplied", omitempty=True, factory=list)
    env_removed: list[str] = _json("envRemoved", omitempty=True, factory=list)
    shell_applied: list[str] = _json("shellApplied", omitempty=True, factory=list)
    shell_removed: list[str] = _json("shellRemoved", omitempty=True, factory=list)
    services_applied: list[str] = _json("servicesApplied", omitempty=True, factory=list)
    services_removed: list[str] = _json("servicesRemoved", omitempty=True, factory=list)


@dataclass
class EnvStatusResult(_JSONRecord):
    """Payload of env list."""

    entries: list[EnvStatusEntry] = _json("entries", factory=list)


@dataclass
class ShellStatusResult(_JSONRecord):
    """Payload of shell status."""

    entries: list[ShellStatusEntry] = _json("entries", factory=list)


@dataclass
class ServiceStatusResult(_JSONRecord):
    """Payload of service status."""

    entries: list[ServiceStatusEntry] = _json("entries", factory=list)


_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def write(stream: TextIO, envelope: Envelope) -> None:
    """Write envelope to stream as one compact JSON line.

    Raises TypeError when the payload cannot be serialised; nothing is
    written in that case. Errors from the stream propagate.
    """
    text = json.dumps(envelope.to_dict(), ensure_ascii=False, separators=(",", ":"))
    # These characters only occur inside JSON strings, so escaping them is safe.
    text = "".join(_HTML_ESCAPES.get(ch, ch) for ch in text)
    stream.write(text + "\n")
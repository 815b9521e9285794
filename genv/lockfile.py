"""The genv.lock.json file: the record of what genv last applied."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from genv.spec import VERSION, _dump_json, _write_atomic


@dataclass
class LockedPackage:
    """How one package was last applied."""

    id: str = ""
    manager: str = ""
    pkg_name: str = ""
    installed_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "manager": self.manager, "pkgName": self.pkg_name}
        if self.installed_version:
            out["installedVersion"] = self.installed_version
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedPackage:
        return cls(
            id=data.get("id") or "",
            manager=data.get("manager") or "",
            pkg_name=data.get("pkgName") or "",
            installed_version=data.get("installedVersion") or "",
        )


@dataclass
class LockedEnvVar:
    """How one environment variable was last applied."""

    name: str = ""
    value: str = ""
    sensitive: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.sensitive:
            out["sensitive"] = True
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedEnvVar:
        return cls(
            name=data.get("name") or "",
            value=data.get("value") or "",
            sensitive=bool(data.get("sensitive")),
        )


@dataclass
class LockedShellAlias:
    """An applied shell alias."""

    name: str = ""
    value: str = ""
    shell: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.shell:
            out["shell"] = self.shell
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedShellAlias:
        return cls(
            name=data.get("name") or "",
            value=data.get("value") or "",
            shell=data.get("shell") or "",
        )


@dataclass
class LockedShellFunction:
    """An applied shell function."""

    name: str = ""
    body: str = ""
    shell: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "body": self.body}
        if self.shell:
            out["shell"] = self.shell
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedShellFunction:
        return cls(
            name=data.get("name") or "",
            body=data.get("body") or "",
            shell=data.get("shell") or "",
        )


@dataclass
class LockedShellConfig:
    """The applied shell configuration block."""

    aliases: list[LockedShellAlias] = field(default_factory=list)
    functions: list[LockedShellFunction] = field(default_factory=list)
    source: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.aliases:
            out["aliases"] = [a.to_dict() for a in self.aliases]
        if self.functions:
            out["functions"] = [fn.to_dict() for fn in self.functions]
        if self.source:
            out["source"] = list(self.source)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedShellConfig:
        return cls(
            aliases=[LockedShellAlias.from_dict(a) for a in data.get("aliases") or []],
            functions=[LockedShellFunction.from_dict(fn) for fn in data.get("functions") or []],
            source=list(data.get("source") or []),
        )


@dataclass
class LockedService:
    """How one service was last applied."""

    name: str = ""
    start: list[str] = field(default_factory=list)
    stop: list[str] = field(default_factory=list)
    restart: list[str] = field(default_factory=list)
    status: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "start": list(self.start)}
        for key in ("stop", "restart", "status"):
            value = getattr(self, key)
            if value:
                out[key] = list(value)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockedService:
        return cls(
            name=data.get("name") or "",
            start=list(data.get("start") or []),
            stop=list(data.get("stop") or []),
            restart=list(data.get("restart") or []),
            status=list(data.get("status") or []),
        )


@dataclass
class LockFile:
    """The applied state tracked by genv."""

    schema_version: str = ""
    packages: list[LockedPackage] = field(default_factory=list)
    env: list[LockedEnvVar] = field(default_factory=list)
    shell: LockedShellConfig | None = None
    services: list[LockedService] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "schemaVersion": self.schema_version,
            "packages": [p.to_dict() for p in self.packages],
        }
        if self.env:
            out["env"] = [e.to_dict() for e in self.env]
        if self.shell is not None:
            out["shell"] = self.shell.to_dict()
        if self.services:
            out["services"] = [s.to_dict() for s in self.services]
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockFile:
        if not isinstance(data, dict):
            raise ValueError("lock file must hold a JSON object")
        shell = data.get("shell")
        return cls(
            schema_version=data.get("schemaVersion") or "",
            packages=[LockedPackage.from_dict(p) for p in data.get("packages") or []],
            env=[LockedEnvVar.from_dict(e) for e in data.get("env") or []],
            shell=LockedShellConfig.from_dict(shell) if shell is not None else None,
            services=[LockedService.from_dict(s) for s in data.get("services") or []],
        )


def read_lock(path: str | os.PathLike[str]) -> LockFile:
    """Read the lock file at path; a missing file yields an empty lock.

    Malformed content raises ValueError; other I/O errors propagate.
    """
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError:
        return LockFile(schema_version=VERSION)
    data = json.loads(raw)
    try:
        return LockFile.from_dict(data)
    except (AttributeError, TypeError) as exc:
        raise ValueError(f"malformed lock file {path}: {exc}") from exc


def write_lock(path: str | os.PathLike[str], lf: LockFile) -> None:
    """Atomically write lf to path, creating parent directories."""
    _write_atomic(path, _dump_json(lf.to_dict()))
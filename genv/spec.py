"""The genv.json manifest: data model, validation and atomic file I/O."""

from __future__ import annotations

import errno
import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

VERSION = "1"
VERSION2 = "2"
VERSION3 = "3"
VERSION4 = "4"
KNOWN_VERSIONS = frozenset({VERSION, VERSION2, VERSION3, VERSION4})

KNOWN_MANAGERS = frozenset({"brew", "paru", "yay", "snap", "linuxbrew"})
KNOWN_SHELL_TARGETS = frozenset({"bash", "zsh", "fish"})
VALID_SHELL_TARGETS_MSG = '"bash", "zsh", or "fish"'

_ENV_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class SpecNotFoundError(FileNotFoundError):
    """Raised when the genv.json file does not exist."""


class InvalidSpecError(ValueError):
    """Raised when genv.json exists but cannot be parsed or fails validation."""


def valid_env_name(name: str) -> bool:
    """Report whether name is a valid POSIX environment variable name."""
    return _ENV_NAME.fullmatch(name) is not None


@dataclass
class Package:
    """One tracked package."""

    id: str
    version: str = ""
    prefer: str = ""
    managers: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id}
        if self.version:
            out["version"] = self.version
        if self.prefer:
            out["prefer"] = self.prefer
        if self.managers:
            out["managers"] = dict(sorted(self.managers.items()))
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Package:
        managers = data.get("managers")
        return cls(
            id=data.get("id") or "",
            version=data.get("version") or "",
            prefer=data.get("prefer") or "",
            managers=dict(managers) if managers is not None else None,
        )


@dataclass
class EnvVar:
    """A declared environment variable."""

    value: str = ""
    sensitive: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"value": self.value}
        if self.sensitive:
            out["sensitive"] = True
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnvVar:
        return cls(value=data.get("value") or "", sensitive=bool(data.get("sensitive")))


@dataclass
class ShellAlias:
    """A shell alias, optionally limited to one shell."""

    value: str = ""
    shell: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"value": self.value}
        if self.shell:
            out["shell"] = self.shell
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShellAlias:
        return cls(value=data.get("value") or "", shell=data.get("shell") or "")


@dataclass
class _ShellFunction:
    body: str = ""
    shell: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"body": self.body}
        if self.shell:
            out["shell"] = self.shell
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> _ShellFunction:
        return cls(body=data.get("body") or "", shell=data.get("shell") or "")


@dataclass
class ShellConfig:
    """The shell block: aliases, functions and extra files to source."""

    aliases: dict[str, ShellAlias] = field(default_factory=dict)
    functions: dict[str, _ShellFunction] = field(default_factory=dict)
    source: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.aliases:
            out["aliases"] = {k: v.to_dict() for k, v in sorted(self.aliases.items())}
        if self.functions:
            out["functions"] = {k: v.to_dict() for k, v in sorted(self.functions.items())}
        if self.source:
            out["source"] = list(self.source)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShellConfig:
        return cls(
            aliases={k: ShellAlias.from_dict(v) for k, v in (data.get("aliases") or {}).items()},
            functions={
                k: _ShellFunction.from_dict(v) for k, v in (data.get("functions") or {}).items()
            },
            source=list(data.get("source") or []),
        )


@dataclass
class Service:
    """A declared service with its lifecycle commands."""

    start: list[str] = field(default_factory=list)
    stop: list[str] = field(default_factory=list)
    restart: list[str] = field(default_factory=list)
    status: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"start": list(self.start)}
        for key in ("stop", "restart", "status"):
            value = getattr(self, key)
            if value:
                out[key] = list(value)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Service:
        return cls(
            start=list(data.get("start") or []),
            stop=list(data.get("stop") or []),
            restart=list(data.get("restart") or []),
            status=list(data.get("status") or []),
        )


@dataclass
class GenvFile:
    """The whole genv.json manifest."""

    schema_version: str = VERSION
    packages: list[Package] = field(default_factory=list)
    env: dict[str, EnvVar] = field(default_factory=dict)
    shell: ShellConfig | None = None
    services: dict[str, Service] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "schemaVersion": self.schema_version,
            "packages": [p.to_dict() for p in self.packages],
        }
        if self.env:
            out["env"] = {k: v.to_dict() for k, v in sorted(self.env.items())}
        if self.shell is not None:
            out["shell"] = self.shell.to_dict()
        if self.services:
            out["services"] = {k: v.to_dict() for k, v in sorted(self.services.items())}
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenvFile:
        shell = data.get("shell")
        return cls(
            schema_version=data.get("schemaVersion") or "",
            packages=[Package.from_dict(p) for p in data.get("packages") or []],
            env={k: EnvVar.from_dict(v) for k, v in (data.get("env") or {}).items()},
            shell=ShellConfig.from_dict(shell) if shell is not None else None,
            services={k: Service.from_dict(v) for k, v in (data.get("services") or {}).items()},
        )


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _optional(obj: dict[str, Any], key: str, kind: type) -> bool:
    value = obj.get(key)
    return value is None or isinstance(value, kind)


def _validate_package(where: str, pkg: Any, seen: set[str]) -> list[str]:
    if not isinstance(pkg, dict):
        return [f"{where}: must be an object"]
    errors = []
    pid = pkg.get("id")
    if not isinstance(pid, str) or not pid:
        errors.append(f"{where}.id: must be a non-empty string")
    elif pid in seen:
        errors.append(f"{where}.id: duplicate id {json.dumps(pid)}")
    else:
        seen.add(pid)
    for key in ("version", "prefer"):
        if not _optional(pkg, key, str):
            errors.append(f"{where}.{key}: must be a string")
    prefer = pkg.get("prefer")
    if isinstance(prefer, str) and prefer and prefer not in KNOWN_MANAGERS:
        errors.append(f"{where}.prefer: unknown manager {json.dumps(prefer)}")
    managers = pkg.get("managers")
    if managers is not None:
        if not isinstance(managers, dict):
            errors.append(f"{where}.managers: must be an object")
        else:
            for mgr, name in managers.items():
                if mgr not in KNOWN_MANAGERS:
                    errors.append(f"{where}.managers: unknown manager {json.dumps(mgr)}")
                if not isinstance(name, str) or not name:
                    errors.append(f"{where}.managers.{mgr}: must be a non-empty string")
    return errors


def _validate_env(env: Any) -> list[str]:
    if not isinstance(env, dict):
        return ["env: must be an object"]
    errors = []
    for name, var in env.items():
        if not valid_env_name(name):
            errors.append(f"env: invalid variable name {json.dumps(name)}")
        if not isinstance(var, dict):
            errors.append(f"env.{name}: must be an object")
            continue
        if not _optional(var, "value", str):
            errors.append(f"env.{name}.value: must be a string")
        if not _optional(var, "sensitive", bool):
            errors.append(f"env.{name}.sensitive: must be a boolean")
    return errors


def _validate_shell_target(where: str, entry: dict[str, Any]) -> list[str]:
    target = entry.get("shell")
    if target is None or target == "":
        return []
    if not isinstance(target, str) or target not in KNOWN_SHELL_TARGETS:
        return [f"{where}.shell: unknown shell {json.dumps(target)}; expected {VALID_SHELL_TARGETS_MSG}"]
    return []


def _validate_shell(shell: Any) -> list[str]:
    if shell is None:
        return []
    if not isinstance(shell, dict):
        return ["shell: must be an object"]
    errors = []
    for block, text_key in (("aliases", "value"), ("functions", "body")):
        entries = shell.get(block)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            errors.append(f"shell.{block}: must be an object")
            continue
        for name, entry in entries.items():
            where = f"shell.{block}.{name}"
            if not name:
                errors.append(f"shell.{block}: names must not be empty")
            if not isinstance(entry, dict):
                errors.append(f"{where}: must be an object")
                continue
            if not _optional(entry, text_key, str):
                errors.append(f"{where}.{text_key}: must be a string")
            errors.extend(_validate_shell_target(where, entry))
    source = shell.get("source")
    if source is not None and not _is_str_list(source):
        errors.append("shell.source: must be an array of strings")
    return errors


def _validate_services(services: Any) -> list[str]:
    if not isinstance(services, dict):
        return ["services: must be an object"]
    errors = []
    for name, svc in services.items():
        where = f"services.{name}"
        if not name:
            errors.append("services: names must not be empty")
        if not isinstance(svc, dict):
            errors.append(f"{where}: must be an object")
            continue
        start = svc.get("start")
        if not _is_str_list(start) or not start:
            errors.append(f"{where}.start: must be a non-empty array of strings")
        for key in ("stop", "restart", "status"):
            value = svc.get(key)
            if value is not None and not _is_str_list(value):
                errors.append(f"{where}.{key}: must be an array of strings")
    return errors


def _validate(data: Any) -> list[str]:
    if not isinstance(data, dict):
        return ["top level: must be a JSON object"]
    errors = []
    version = data.get("schemaVersion")
    if version is None:
        errors.append("schemaVersion: required")
    elif not isinstance(version, str) or version not in KNOWN_VERSIONS:
        known = ", ".join(json.dumps(v) for v in sorted(KNOWN_VERSIONS))
        errors.append(f"schemaVersion: unsupported value {json.dumps(version)}; expected one of {known}")
    packages = data.get("packages")
    if not isinstance(packages, list):
        errors.append("packages: must be an array")
    else:
        seen: set[str] = set()
        for index, pkg in enumerate(packages):
            errors.extend(_validate_package(f"packages[{index}]", pkg, seen))
    if data.get("env") is not None:
        errors.extend(_validate_env(data["env"]))
    errors.extend(_validate_shell(data.get("shell")))
    if data.get("services") is not None:
        errors.extend(_validate_services(data["services"]))
    return errors


def default_dir() -> str:
    """Return the genv config directory, honouring $XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return os.path.join(xdg, "genv")
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise OSError(f"cannot determine home directory: {exc}") from exc
    return os.path.join(str(home), ".config", "genv")


def default_spec_path() -> str:
    """Return the default location of genv.json."""
    return os.path.join(default_dir(), "genv.json")


def lock_path_from(spec_path: str) -> str:
    """Derive the lock file path: "genv.json" becomes "genv.lock.json"."""
    return spec_path.removesuffix(".json") + ".lock.json"


def read(path: str | os.PathLike[str]) -> GenvFile:
    """Load, parse and validate the genv.json at path.

    Raises SpecNotFoundError when the file is absent and InvalidSpecError when
    it cannot be parsed or fails validation. Other I/O errors propagate.
    """
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError as exc:
        raise SpecNotFoundError(errno.ENOENT, "genv.json not found", str(path)) from exc
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise InvalidSpecError(f"invalid genv.json: {path}: {exc}") from exc
    errors = _validate(data)
    if errors:
        raise InvalidSpecError(
            f"invalid genv.json: {path}: validation errors:\n  " + "\n  ".join(errors)
        )
    return GenvFile.from_dict(data)


def read_or_new(path: str | os.PathLike[str]) -> tuple[GenvFile, bool]:
    """Read genv.json, or return a fresh manifest and True when the file is absent."""
    try:
        return read(path), False
    except SpecNotFoundError:
        return new(), True


def new() -> GenvFile:
    """Return a minimal, valid manifest."""
    return GenvFile(schema_version=VERSION, packages=[])


def _dump_json(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False) + "\n"


def _write_atomic(path: str | os.PathLike[str], text: str) -> None:
    target = Path(path)
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    try:
        os.replace(tmp, target)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def write(path: str | os.PathLike[str], f: GenvFile) -> None:
    """Atomically write f to path as indented JSON, creating parent directories."""
    _write_atomic(path, _dump_json(f.to_dict()))
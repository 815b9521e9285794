"""Edits to the genv.json manifest and the tables that list its contents."""

from __future__ import annotations

import json
from typing import TextIO

from genv.spec import (
    KNOWN_MANAGERS,
    KNOWN_SHELL_TARGETS,
    VALID_SHELL_TARGETS_MSG,
    VERSION2,
    VERSION3,
    VERSION4,
    EnvVar,
    GenvFile,
    Package,
    Service,
    ShellAlias,
    ShellConfig,
    valid_env_name,
)


class AlreadyTrackedError(ValueError):
    """Raised by add when the package ID is already present."""


class NotTrackedError(LookupError):
    """Raised by remove when the package ID is not present."""


class EnvNotFoundError(LookupError):
    """Raised when a variable is not declared in the spec."""


class ServiceNotFoundError(LookupError):
    """Raised when a service is not declared in the spec."""


class ShellAliasNotFoundError(LookupError):
    """Raised when an alias is not declared in the spec."""


def _q(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _write_table(out: TextIO, rows: list[list[str]]) -> None:
    """Write rows as left-aligned columns separated by at least two spaces."""
    ncols = max(len(row) for row in rows)
    widths = [
        max((len(row[i]) for row in rows if len(row) > i + 1), default=0) + 2
        for i in range(ncols - 1)
    ]
    for row in rows:
        padded = [cell.ljust(widths[i]) for i, cell in enumerate(row[:-1])]
        out.write("".join(padded) + row[-1] + "\n")


def known_manager_list() -> str:
    """Return the known manager names, sorted and comma separated."""
    return ", ".join(sorted(KNOWN_MANAGERS))


def redact_value(value: str, sensitive: bool) -> str:
    """Return "[redacted]" for a non-empty sensitive value, else the value itself."""
    if sensitive and value:
        return "[redacted]"
    return value


def add(
    f: GenvFile, id: str, version: str, prefer: str, managers: dict[str, str] | None
) -> None:
    """Append a new package to f.

    Raises AlreadyTrackedError for a duplicate ID and ValueError for an empty ID
    or an unknown manager name.
    """
    if not id:
        raise ValueError("package id must not be empty")
    if any(p.id == id for p in f.packages):
        raise AlreadyTrackedError(
            f"package already tracked: {_q(id)} (use 'genv remove {id}' first to re-add it)"
        )
    if prefer and prefer not in KNOWN_MANAGERS:
        raise ValueError(
            f"unknown manager {_q(prefer)} for --prefer; valid managers: {known_manager_list()}"
        )
    for mgr in managers or {}:
        if mgr not in KNOWN_MANAGERS:
            raise ValueError(
                f"unknown manager {_q(mgr)} in --manager; valid managers: {known_manager_list()}"
            )
    f.packages.append(Package(id=id, version=version, prefer=prefer, managers=managers))


def remove(f: GenvFile, id: str) -> None:
    """Delete the first package with this ID, keeping the others in order.

    Raises ValueError for an empty ID and NotTrackedError when it is absent.
    """
    if not id:
        raise ValueError("package id must not be empty")
    for index, pkg in enumerate(f.packages):
        if pkg.id == id:
            del f.packages[index]
            return
    raise NotTrackedError(f"package not tracked: {_q(id)}")


def list_packages(f: GenvFile | None, out: TextIO) -> None:
    """Write a table of f's packages to out."""
    if f is None or not f.packages:
        out.write("no packages tracked\n")
        return
    rows = [["ID", "VERSION", "PREFER", "MANAGERS"], ["--", "-------", "------", "--------"]]
    for pkg in f.packages:
        managers = (
            ", ".join(f"{k}={pkg.managers[k]}" for k in sorted(pkg.managers)) if pkg.managers else "-"
        )
        rows.append([pkg.id, pkg.version or "*", pkg.prefer or "-", managers])
    _write_table(out, rows)


def env_set(f: GenvFile, name: str, value: str, sensitive: bool) -> None:
    """Add or update a variable and move f to schema version 2.

    Raises ValueError when name is not a valid POSIX variable name.
    """
    if not valid_env_name(name):
        raise ValueError(
            f"invalid variable name {_q(name)}: must match [A-Za-z_][A-Za-z0-9_]*\n"
            "Tip: use letters, digits, and underscores only; the name must not start with a digit"
        )
    if f.env is None:
        f.env = {}
    f.env[name] = EnvVar(value=value, sensitive=sensitive)
    f.schema_version = VERSION2


def env_unset(f: GenvFile, name: str) -> None:
    """Remove a variable; raises EnvNotFoundError when it is not declared."""
    if not f.env or name not in f.env:
        raise EnvNotFoundError(
            f"env var not found in spec: {_q(name)}\n"
            "Tip: run 'genv env list' to see declared variables"
        )
    del f.env[name]


def env_list(f: GenvFile, out: TextIO) -> None:
    """Write a table of the declared variables, redacting sensitive values."""
    if not f.env:
        out.write("no env variables declared.\n")
        return
    rows = [["NAME", "VALUE", "SENSITIVE"]]
    for name in sorted(f.env):
        ev = f.env[name]
        rows.append([name, redact_value(ev.value, ev.sensitive), "yes" if ev.sensitive else ""])
    _write_table(out, rows)


def service_add(
    f: GenvFile,
    name: str,
    start: list[str],
    stop: list[str] | None,
    restart: list[str] | None,
    status: list[str] | None,
) -> None:
    """Add or update a service and move f to schema version 4.

    Raises ValueError for an empty name or an empty start command.
    """
    if not name:
        raise ValueError("service name must not be empty")
    if not start:
        raise ValueError("start command is required")
    if f.services is None:
        f.services = {}
    f.services[name] = Service(
        start=list(start),
        stop=list(stop or []),
        restart=list(restart or []),
        status=list(status or []),
    )
    f.schema_version = VERSION4


def service_remove(f: GenvFile, name: str) -> None:
    """Remove a service; raises ServiceNotFoundError when it is not declared."""
    if not f.services or name not in f.services:
        raise ServiceNotFoundError(
            f"service not found in spec: {_q(name)}\n"
            "Tip: run 'genv service list' to see declared services"
        )
    del f.services[name]


def service_list(f: GenvFile, out: TextIO) -> None:
    """Write a table of the declared services."""
    if not f.services:
        out.write("no services declared.\n")
        return
    rows = [["NAME", "START", "STOP", "STATUS"]]
    for name in sorted(f.services):
        svc = f.services[name]
        rows.append(
            [
                name,
                " ".join(svc.start),
                " ".join(svc.stop) or "—",
                " ".join(svc.status) or "—",
            ]
        )
    _write_table(out, rows)


def ensure_shell(f: GenvFile) -> None:
    """Give f a shell block if it has none and move it to schema version 3."""
    if f.shell is None:
        f.shell = ShellConfig()
    f.schema_version = VERSION3


def shell_alias_set(f: GenvFile, name: str, value: str, shell: str) -> None:
    """Add or update an alias, optionally limited to "bash", "zsh" or "fish".

    Raises ValueError for an empty name or an unknown shell.
    """
    if not name:
        raise ValueError("alias name must not be empty\nTip: provide a valid shell identifier as NAME")
    if shell and shell not in KNOWN_SHELL_TARGETS:
        raise ValueError(f"unknown shell {_q(shell)}; expected {VALID_SHELL_TARGETS_MSG}")
    ensure_shell(f)
    assert f.shell is not None
    f.shell.aliases[name] = ShellAlias(value=value, shell=shell)


def shell_alias_unset(f: GenvFile, name: str) -> None:
    """Remove an alias; raises ShellAliasNotFoundError when it is not declared."""
    if f.shell is None:
        raise ShellAliasNotFoundError(
            f"alias not found in spec: {_q(name)}\n"
            "Tip: run 'genv shell alias set' to declare aliases"
        )
    if name not in f.shell.aliases:
        raise ShellAliasNotFoundError(
            f"alias not found in spec: {_q(name)}\n"
            "Tip: run 'genv shell status' to see declared aliases"
        )
    del f.shell.aliases[name]
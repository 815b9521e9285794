"""The managed shell fragment that exports the variables declared in genv.json."""

from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from genv.lockfile import LockedEnvVar
from genv.spec import EnvVar, _write_atomic, default_dir

_HEADER = "# genv managed env — do not edit between these markers\n# BEGIN genv env\n"
_FOOTER = "# END genv env\n"


def fragment_path() -> str:
    """Return the path of the managed fragment, honouring $XDG_CONFIG_HOME."""
    return os.path.join(default_dir(), "env.sh")


def shell_quote(v: str) -> str:
    """Single-quote v so that it is safe to embed in a POSIX shell script."""
    return "'" + v.replace("'", "'\\''") + "'"


def shell_unquote(s: str) -> str:
    """Reverse shell_quote; strings that are not single-quoted come back unchanged."""
    if len(s) >= 2 and s[0] == "'" and s[-1] == "'":
        return s[1:-1].replace("'\\''", "'")
    return s


def write_fragment(path: str | os.PathLike[str], vars: dict[str, EnvVar] | None) -> None:
    """Atomically write a fragment exporting every variable in vars.

    Values are written as they are, sensitive or not: the shell needs them.
    With no variables the fragment is removed instead.
    """
    if not vars:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        return
    exports = "".join(f"export {name}={shell_quote(vars[name].value)}\n" for name in sorted(vars))
    _write_atomic(path, _HEADER + exports + _FOOTER)


def inject_source_line(rc_path: str | os.PathLike[str], fragment_path: str) -> None:
    """Append a line sourcing fragment_path to rc_path unless it is already referenced.

    The rc file and its parent directories are created when missing.
    """
    rc = Path(rc_path)
    try:
        existing = rc.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        existing = ""
    if fragment_path in existing:
        return
    rc.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    with rc.open("a", encoding="utf-8") as handle:
        handle.write(f"\n# genv env\n. {fragment_path}\n")


def rc_files() -> list[str]:
    """Return the shell rc files to source the fragment from, based on $SHELL."""
    try:
        home = str(Path.home())
    except RuntimeError:
        return []
    shell = os.path.basename(os.environ.get("SHELL", ""))
    if shell == "zsh":
        return [os.path.join(home, ".zshrc")]
    # fish and everything else fall back to the POSIX-compatible bash rc.
    return [os.path.join(home, ".bashrc")]


class EnvStatusKind(str, enum.Enum):
    """State of a variable in the spec compared with the lock."""

    OK = "ok"
    MODIFIED = "modified"
    MISSING = "missing"
    EXTRA = "extra"


@dataclass
class EnvStatusEntry:
    """One row of the env status report."""

    name: str
    kind: EnvStatusKind
    spec_value: str = ""
    lock_value: str = ""
    sensitive: bool = False


def env_status(
    spec_env: dict[str, EnvVar] | None, lock_env: list[LockedEnvVar] | None
) -> list[EnvStatusEntry]:
    """Compare the spec env block with the locked env entries.

    Spec-side entries come first in name order, then lock-only extras in name order.
    """
    spec_env = spec_env or {}
    lock_env = lock_env or []
    lock_by_name = {le.name: le for le in lock_env}

    entries: list[EnvStatusEntry] = []
    for name in sorted(spec_env):
        ev = spec_env[name]
        le = lock_by_name.get(name)
        if le is None:
            entries.append(
                EnvStatusEntry(name, EnvStatusKind.MISSING, spec_value=ev.value, sensitive=ev.sensitive)
            )
            continue
        kind = EnvStatusKind.OK if le.value == ev.value else EnvStatusKind.MODIFIED
        entries.append(
            EnvStatusEntry(
                name,
                kind,
                spec_value=ev.value,
                lock_value=le.value,
                sensitive=ev.sensitive or le.sensitive,
            )
        )

    for name in sorted(le.name for le in lock_env):
        if name not in spec_env:
            le = lock_by_name[name]
            entries.append(
                EnvStatusEntry(name, EnvStatusKind.EXTRA, lock_value=le.value, sensitive=le.sensitive)
            )
    return entries


def apply_env(
    fragment_path: str, vars: dict[str, EnvVar] | None, rc_files: list[str] | None
) -> None:
    """Write the fragment and make every rc file source it.

    A failure to update an rc file is reported on stderr and does not stop the run.
    """
    write_fragment(fragment_path, vars)
    if not vars:
        return
    for rc in rc_files or []:
        try:
            inject_source_line(rc, fragment_path)
        except OSError as exc:
            print(f"genv: warning: could not inject source line into {rc}: {exc}", file=sys.stderr)


def read_fragment(path: str | os.PathLike[str]) -> dict[str, str]:
    """Return the variables exported by the fragment at path; a missing file yields {}."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return {}
    result: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line.startswith("export "):
            continue
        name, sep, quoted = line[len("export "):].partition("=")
        if sep:
            result[name] = shell_unquote(quoted)
    return result
"""Host detection helpers: case-insensitive matching and WSL-aware PATH lookup."""

from __future__ import annotations

import errno
import functools
import os
import shutil
import stat
from pathlib import Path

_PROC_VERSION = Path("/proc/version")


def contains_fold(s: str, substr: str) -> bool:
    """Report whether ``substr`` occurs in ``s``, ignoring case."""
    return substr.lower() in s.lower()


@functools.lru_cache(maxsize=None)
def is_wsl() -> bool:
    """Report whether this process runs inside Windows Subsystem for Linux.

    The WSL kernel puts "microsoft" into /proc/version. Any read failure
    (non-Linux host, missing file) means "not WSL". The answer is cached.
    """
    try:
        data = _PROC_VERSION.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False
    return contains_fold(data, "microsoft")


def is_windows_mount_path(p: str) -> bool:
    """Report whether ``p`` is a WSL Windows drive mount such as /mnt/c or /mnt/c/..."""
    if len(p) < 6 or not p.startswith("/mnt/"):
        return False
    rest = p[5:]
    drive = rest[0]
    if not "a" <= drive <= "z":
        return False
    return len(rest) == 1 or rest[1] == "/"


def sanitize_path_for_wsl(path_env: str) -> str:
    """Drop Windows drive mount entries from a PATH string, keeping the rest in order."""
    entries = path_env.split(os.pathsep) if path_env else []
    return os.pathsep.join(e for e in entries if not is_windows_mount_path(e))


def _not_found(file: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, "executable file not found in $PATH", file)


def wsl_safe_look_path(file: str) -> str:
    """Locate an executable on PATH, ignoring Windows mounts when running on WSL.

    Raises FileNotFoundError when no executable is found.
    """
    if is_wsl():
        clean = sanitize_path_for_wsl(os.environ.get("PATH", ""))
        for directory in clean.split(os.pathsep) if clean else []:
            candidate = os.path.join(directory, file)
            try:
                info = os.stat(candidate)
            except OSError:
                continue
            if not stat.S_ISDIR(info.st_mode) and info.st_mode & 0o111:
                return candidate
        raise _not_found(file)
    found = shutil.which(file)
    if found is None:
        raise _not_found(file)
    return found
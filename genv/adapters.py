"""Package manager adapters and the ordered registry of all known managers."""

from __future__ import annotations

import abc
import subprocess

from genv.wsl import contains_fold, wsl_safe_look_path


def look_path(file: str) -> str:
    """Locate an executable for an adapter; raises FileNotFoundError if absent."""
    return wsl_safe_look_path(file)


def run_query(cmd: str, *args: str) -> bool:
    """Run a command and treat exit status 0 as "installed".

    A non-zero exit means "not installed". Failure to start the command
    (e.g. a missing binary) raises OSError.
    """
    completed = subprocess.run(
        [cmd, *args],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    return completed.returncode == 0


def _capture(cmd: str, args: tuple[str, ...]) -> str | None:
    completed = subprocess.run(
        [cmd, *args],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    if completed.returncode != 0:
        return None
    return completed.stdout.decode("utf-8", errors="replace")


def run_list_output(cmd: str, *args: str) -> list[str]:
    """Run a command and return its stdout as trimmed, non-empty lines.

    A non-zero exit yields an empty list.
    """
    out = _capture(cmd, args)
    if out is None:
        return []
    return [line.strip() for line in out.split("\n") if line.strip()]


def run_version_output(cmd: str, *args: str) -> str:
    """Run a command and return its trimmed stdout; a non-zero exit yields ""."""
    out = _capture(cmd, args)
    return "" if out is None else out.strip()


def parse_pacman_search(lines: list[str], query: str) -> list[str]:
    """Extract package names matching query from pacman-style ``-Ss`` output."""
    names = []
    for line in lines:
        if line.startswith((" ", "\t")):
            continue
        fields = line.split()
        if not fields:
            continue
        _, sep, name = fields[0].partition("/")
        if sep and contains_fold(name, query):
            names.append(name)
    return names


def parse_mgr_query_version(out: str) -> str:
    """Extract the version from "pkgname version" output."""
    parts = out.split(" ", 1)
    return parts[1] if len(parts) == 2 else ""


class Adapter(abc.ABC):
    """Capability contract every package manager implements."""

    name: str = ""
    binary: str = ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def available(self) -> bool:
        """Report whether this manager's binary is on PATH."""
        try:
            look_path(self.binary)
        except OSError:
            return False
        return True

    def normalize_id(self, id: str, managers: dict[str, str] | None) -> tuple[str, bool]:
        """Return the concrete package name and whether it came from an explicit mapping."""
        if managers and self.name in managers:
            return managers[self.name], True
        return id, False

    @abc.abstractmethod
    def plan_install(self, pkg_name: str) -> list[str]:
        """Return the argv that installs pkg_name."""

    @abc.abstractmethod
    def plan_uninstall(self, pkg_name: str) -> list[str]:
        """Return the argv that uninstalls pkg_name."""

    @abc.abstractmethod
    def plan_upgrade(self, pkg_name: str) -> list[str]:
        """Return the argv that upgrades pkg_name."""

    @abc.abstractmethod
    def plan_clean(self) -> list[list[str]]:
        """Return the commands that purge this manager's cache (possibly none)."""

    @abc.abstractmethod
    def query(self, pkg_name: str) -> bool:
        """Report whether pkg_name is installed."""

    @abc.abstractmethod
    def list_installed(self) -> list[str]:
        """Return the names of all packages installed via this manager."""

    @abc.abstractmethod
    def query_version(self, pkg_name: str) -> str:
        """Return the installed version of pkg_name, or "" when unknown."""

    @abc.abstractmethod
    def search(self, query: str) -> list[str]:
        """Return repository package names containing query."""


class _BrewBase(Adapter):
    binary = "brew"

    def plan_install(self, pkg_name: str) -> list[str]:
        return ["brew", "install", pkg_name]

    def plan_uninstall(self, pkg_name: str) -> list[str]:
        return ["brew", "uninstall", pkg_name]

    def plan_upgrade(self, pkg_name: str) -> list[str]:
        return ["brew", "upgrade", pkg_name]

    def plan_clean(self) -> list[list[str]]:
        return [["brew", "cleanup"]]

    def search(self, query: str) -> list[str]:
        return [
            line
            for line in run_list_output("brew", "search", query)
            if not line.startswith("==>") and contains_fold(line, query)
        ]

    def query_version(self, pkg_name: str) -> str:
        out = run_version_output("brew", "list", "--versions", pkg_name)
        if not out:
            return out
        parts = out.split(" ", 1)
        return parts[1] if len(parts) == 2 else ""


class Brew(_BrewBase):
    """Homebrew on macOS and Linux, covering formulae and casks."""

    name = "brew"

    def query(self, pkg_name: str) -> bool:
        if run_query("brew", "list", "--formula", pkg_name):
            return True
        return run_query("brew", "list", "--cask", pkg_name)

    def list_installed(self) -> list[str]:
        formulae = run_list_output("brew", "list", "--formula", "--1")
        casks = run_list_output("brew", "list", "--cask", "--1")
        return formulae + casks


class Linuxbrew(_BrewBase):
    """Homebrew on Linux under its own manager ID; formulae only."""

    name = "linuxbrew"

    def query(self, pkg_name: str) -> bool:
        return run_query("brew", "list", "--formula", pkg_name)

    def list_installed(self) -> list[str]:
        return run_list_output("brew", "list", "--formula", "--1")


class _PacmanHelper(Adapter):
    """AUR helpers that wrap pacman and handle privilege escalation themselves."""

    def plan_install(self, pkg_name: str) -> list[str]:
        return [self.binary, "-S", "--noconfirm", pkg_name]

    def plan_uninstall(self, pkg_name: str) -> list[str]:
        return [self.binary, "-Rns", "--noconfirm", pkg_name]

    def plan_upgrade(self, pkg_name: str) -> list[str]:
        return [self.binary, "-S", "--noconfirm", pkg_name]

    def plan_clean(self) -> list[list[str]]:
        return [[self.binary, "-Sc", "--noconfirm"]]

    def query(self, pkg_name: str) -> bool:
        return run_query(self.binary, "-Qi", pkg_name)

    def search(self, query: str) -> list[str]:
        lines = run_list_output(self.binary, "-Ss", query)
        return parse_pacman_search(lines, query)

    def list_installed(self) -> list[str]:
        return run_list_output("pacman", "-Qqe")

    def query_version(self, pkg_name: str) -> str:
        out = run_version_output(self.binary, "-Q", pkg_name)
        if not out:
            return out
        return parse_mgr_query_version(out)


class Paru(_PacmanHelper):
    """The paru AUR helper for Arch Linux."""

    name = "paru"
    binary = "paru"


class Yay(_PacmanHelper):
    """The yay AUR helper for Arch Linux."""

    name = "yay"
    binary = "yay"


class Snap(Adapter):
    """The Snap package manager."""

    name = "snap"
    binary = "snap"

    def plan_install(self, pkg_name: str) -> list[str]:
        return ["sudo", "snap", "install", pkg_name]

    def plan_uninstall(self, pkg_name: str) -> list[str]:
        return ["sudo", "snap", "remove", "--purge", pkg_name]

    def plan_upgrade(self, pkg_name: str) -> list[str]:
        return ["sudo", "snap", "refresh", pkg_name]

    def plan_clean(self) -> list[list[str]]:
        return []

    def query(self, pkg_name: str) -> bool:
        return run_query("snap", "list", pkg_name)

    @staticmethod
    def _first_fields(lines: list[str]) -> list[str]:
        return [line.split()[0] for line in lines[1:] if line.split()]

    def search(self, query: str) -> list[str]:
        lines = run_list_output("snap", "find", query)
        return [name for name in self._first_fields(lines) if contains_fold(name, query)]

    def list_installed(self) -> list[str]:
        return self._first_fields(run_list_output("snap", "list"))

    def query_version(self, pkg_name: str) -> str:
        out = run_version_output("snap", "list", pkg_name)
        if not out:
            return out
        lines = out.split("\n")
        if len(lines) >= 2:
            fields = lines[1].split()
            if len(fields) >= 2:
                return fields[1]
        return ""


ALL: tuple[Adapter, ...] = (Brew(), Paru(), Yay(), Snap(), Linuxbrew())


def by_name(name: str) -> Adapter | None:
    """Return the registered adapter with this name, or None."""
    return next((a for a in ALL if a.name == name), None)
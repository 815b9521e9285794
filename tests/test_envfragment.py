import os

import pytest

from genv.envfragment import (
    EnvStatusKind,
    apply_env,
    env_status,
    fragment_path,
    inject_source_line,
    rc_files,
    read_fragment,
    shell_quote,
    shell_unquote,
    write_fragment,
)
from genv.lockfile import LockedEnvVar
from genv.spec import EnvVar


@pytest.mark.parametrize(
    "value",
    [
        "simple",
        "with spaces",
        "has'single'quote",
        'has"double"quote',
        "dollar$sign",
        "back`tick`here",
        "",
        "it's a test",
    ],
)
def test_shell_quote_roundtrip(value):
    quoted = shell_quote(value)
    assert shell_unquote(quoted) == value
    assert quoted.startswith("'") and quoted.endswith("'")


def test_shell_quote_escapes_single_quote():
    assert shell_quote("it's") == "'it'\\''s'"


def test_shell_unquote_leaves_unquoted_text():
    assert shell_unquote("plain") == "plain"


def test_write_fragment_basic(tmp_path):
    path = tmp_path / "env.sh"
    write_fragment(path, {"FOO": EnvVar("bar"), "BAZ": EnvVar("hello world")})
    assert read_fragment(path) == {"FOO": "bar", "BAZ": "hello world"}


def test_write_fragment_exact_content(tmp_path):
    path = tmp_path / "env.sh"
    write_fragment(path, {"FOO": EnvVar("bar")})
    assert path.read_text(encoding="utf-8") == (
        "# genv managed env — do not edit between these markers\n"
        "# BEGIN genv env\n"
        "export FOO='bar'\n"
        "# END genv env\n"
    )
    assert not (tmp_path / "env.sh.tmp").exists()


def test_write_fragment_special_chars(tmp_path):
    path = tmp_path / "env.sh"
    value = "it's a $test with `backticks`"
    write_fragment(path, {"TRICKY": EnvVar(value)})
    assert read_fragment(path)["TRICKY"] == value


def test_write_fragment_sensitive_value_written(tmp_path):
    path = tmp_path / "env.sh"
    write_fragment(path, {"API_TOKEN": EnvVar("token", sensitive=True)})
    assert read_fragment(path) == {"API_TOKEN": "token"}


def test_write_fragment_empty_removes_file(tmp_path):
    path = tmp_path / "env.sh"
    write_fragment(path, {"X": EnvVar("1")})
    assert path.exists()
    write_fragment(path, None)
    assert not path.exists()


def test_write_fragment_empty_missing_file_ok(tmp_path):
    path = tmp_path / "env.sh"
    write_fragment(path, {})
    assert not path.exists()


def test_read_fragment_nonexistent(tmp_path):
    assert read_fragment(tmp_path / "missing.sh") == {}


def test_write_fragment_deterministic(tmp_path):
    path = tmp_path / "env.sh"
    write_fragment(path, {"ZZZ": EnvVar("last"), "AAA": EnvVar("first"), "MMM": EnvVar("middle")})
    content = path.read_text(encoding="utf-8")
    assert content.index("export AAA=") < content.index("export MMM=") < content.index("export ZZZ=")


def test_write_fragment_creates_parent_dirs(tmp_path):
    path = tmp_path / "a" / "b" / "env.sh"
    write_fragment(path, {"X": EnvVar("1")})
    assert read_fragment(path) == {"X": "1"}


def test_inject_source_line_adds_once(tmp_path):
    rc = tmp_path / ".bashrc"
    frag = str(tmp_path / "env.sh")
    inject_source_line(rc, frag)
    assert frag in rc.read_text(encoding="utf-8")
    inject_source_line(rc, frag)
    assert rc.read_text(encoding="utf-8").count(frag) == 1


def test_inject_source_line_exact_text(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("alias ll='ls -l'\n", encoding="utf-8")
    inject_source_line(rc, "/frag/env.sh")
    assert rc.read_text(encoding="utf-8") == "alias ll='ls -l'\n\n# genv env\n. /frag/env.sh\n"


def test_inject_source_line_creates_rc_file(tmp_path):
    rc = tmp_path / "nonexistent.rc"
    inject_source_line(rc, "/some/path/env.sh")
    assert rc.is_file()


def test_fragment_path_with_xdg(monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/myxdg")
    assert fragment_path() == os.path.join("/tmp/myxdg", "genv", "env.sh")


def test_fragment_path_without_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", "")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert fragment_path() == os.path.join(str(tmp_path), ".config", "genv", "env.sh")


@pytest.mark.parametrize(
    ("shell", "rc"),
    [("/bin/zsh", ".zshrc"), ("/bin/bash", ".bashrc"), ("/usr/bin/fish", ".bashrc"), ("", ".bashrc")],
)
def test_rc_files(monkeypatch, tmp_path, shell, rc):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("SHELL", shell)
    assert rc_files() == [os.path.join(str(tmp_path), rc)]


def test_env_status_all_ok():
    spec = {"FOO": EnvVar("bar"), "BAZ": EnvVar("qux")}
    lock = [LockedEnvVar("FOO", "bar"), LockedEnvVar("BAZ", "qux")]
    entries = env_status(spec, lock)
    assert [e.name for e in entries] == ["BAZ", "FOO"]
    assert all(e.kind is EnvStatusKind.OK for e in entries)


def test_env_status_missing():
    entries = env_status({"FOO": EnvVar("bar")}, None)
    assert len(entries) == 1
    assert entries[0].kind is EnvStatusKind.MISSING
    assert entries[0].spec_value == "bar"
    assert entries[0].lock_value == ""


def test_env_status_extra():
    entries = env_status(None, [LockedEnvVar("ORPHAN", "x")])
    assert len(entries) == 1
    assert entries[0].kind is EnvStatusKind.EXTRA
    assert entries[0].lock_value == "x"


def test_env_status_modified():
    entries = env_status({"FOO": EnvVar("new")}, [LockedEnvVar("FOO", "old")])
    assert len(entries) == 1
    assert entries[0].kind is EnvStatusKind.MODIFIED
    assert (entries[0].spec_value, entries[0].lock_value) == ("new", "old")


def test_env_status_sensitive_merged_and_order():
    spec = {"B": EnvVar("1"), "A": EnvVar("2")}
    lock = [LockedEnvVar("Z", "z"), LockedEnvVar("B", "1", sensitive=True), LockedEnvVar("C", "c")]
    entries = env_status(spec, lock)
    assert [(e.name, e.kind.value) for e in entries] == [
        ("A", "missing"),
        ("B", "ok"),
        ("C", "extra"),
        ("Z", "extra"),
    ]
    assert entries[1].sensitive is True


def test_apply_env_basic(tmp_path):
    frag = str(tmp_path / "env.sh")
    rc1 = tmp_path / ".bashrc"
    rc2 = tmp_path / ".zshrc"
    apply_env(frag, {"FOO": EnvVar("bar")}, [str(rc1), str(rc2)])
    assert read_fragment(frag) == {"FOO": "bar"}
    for rc in (rc1, rc2):
        assert frag in rc.read_text(encoding="utf-8")


def test_apply_env_empty_vars(tmp_path):
    frag = tmp_path / "env.sh"
    rc = tmp_path / ".bashrc"
    write_fragment(frag, {"X": EnvVar("1")})
    apply_env(str(frag), None, [str(rc)])
    assert not frag.exists()
    assert not rc.exists()


def test_apply_env_write_error(tmp_path):
    frag = tmp_path / "env.sh"
    frag.mkdir()
    with pytest.raises(OSError):
        apply_env(str(frag), {"FOO": EnvVar("bar")}, None)


def test_apply_env_inject_error_non_fatal(tmp_path, capsys):
    frag = str(tmp_path / "env.sh")
    rc = tmp_path / ".bashrc"
    rc.mkdir()
    apply_env(frag, {"FOO": EnvVar("bar")}, [str(rc)])
    assert read_fragment(frag) == {"FOO": "bar"}
    assert "could not inject source line" in capsys.readouterr().err
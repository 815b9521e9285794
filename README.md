# genv

`genv` is a library that keeps a workstation's setup in one JSON manifest
(`genv.json`). The manifest lists the packages you want installed,
environment variables, shell aliases and long-running services. A companion
lock file (`genv.lock.json`) records what was last applied.

## Installing

```
pip install .
```

Python 3.10 or later is required. The package has no runtime dependencies.
To run the tests, install the `test` extra (`pip install .[test]`) and run
`pytest`.

## Modules

| Module | What it holds |
| --- | --- |
| `genv.spec` | The manifest model (`GenvFile`, `Package`, `EnvVar`, `ShellAlias`, `ShellConfig`, `Service`), validation, and `read`, `read_or_new`, `new`, `write` |
| `genv.lockfile` | The lock file model (`LockFile`, `LockedPackage`, `LockedEnvVar`, …), plus `read_lock` and `write_lock` |
| `genv.commands` | Edits to the manifest and plain-text tables of its contents |
| `genv.envfragment` | The shell fragment that exports the declared variables, and env status |
| `genv.adapters` | Package manager adapters and their registry |
| `genv.wsl` | Case-insensitive matching and WSL-aware `PATH` lookup |
| `genv.output` | JSON envelope types for machine-readable output |
| `genv.logsetup` | `init(debug)`, which configures the root logger on stderr |

## Supported package managers

The adapters in `genv.adapters.ALL` come in this order: `brew`, `paru`, `yay`,
`snap`, `linuxbrew`. `by_name(name)` returns one of them, or `None`.

Each adapter has these methods:

- `available()`: reports whether its binary is on `PATH`.
- `normalize_id(id, managers)`: maps a package ID to the name this manager uses.
- `plan_install`, `plan_uninstall`, `plan_upgrade` and `plan_clean`: return the command lines (argv lists) to run.
- `query`, `list_installed`, `query_version` and `search`: run the manager to inspect the installed state or the package repository.

On WSL, Windows drive mounts such as `/mnt/c/...` are left out of the `PATH`
search. This stops Windows binaries from shadowing Linux package managers.

```python
from genv.adapters import by_name

brew = by_name("brew")
print(brew.plan_install("neovim"))   # ['brew', 'install', 'neovim']
print(brew.normalize_id("firefox", {"brew": "firefox-esr"}))  # ('firefox-esr', True)
```

## Editing the manifest

```python
import sys
from genv import spec, commands

path = spec.default_spec_path()
f, is_new = spec.read_or_new(path)
commands.add(f, "neovim", "0.10.*", "brew", None)
commands.env_set(f, "EDITOR", "nvim", False)
commands.shell_alias_set(f, "ll", "ls -la", "")
commands.service_add(f, "redis", ["redis-server"], None, None, None)
commands.list_packages(f, sys.stdout)
spec.write(path, f)
```

Bad input raises an exception:

- `commands.add` raises `AlreadyTrackedError` when the package is already in the manifest.
- `commands.remove` raises `NotTrackedError` when the package is not in the manifest.
- The unset and remove functions raise `EnvNotFoundError`, `ShellAliasNotFoundError` or `ServiceNotFoundError` when the entry does not exist.
- Invalid names and unknown managers raise `ValueError`.

Setting an env variable moves the manifest to schema version 2. Setting an
alias moves it to version 3, and adding a service moves it to version 4.
`env_list` prints sensitive values as `[redacted]`.

The manifest is stored in `$XDG_CONFIG_HOME/genv/genv.json`, falling back to
`~/.config/genv/genv.json`. `spec.read` raises `SpecNotFoundError` when the
file is missing and `InvalidSpecError` when it cannot be parsed or fails
validation. `spec.write` and `lockfile.write_lock` write atomically. They
create parent directories, write a temporary file, and then rename it into
place. `spec.lock_path_from("genv.json")` gives `"genv.lock.json"`.

## Environment fragment

`genv.envfragment.write_fragment` writes the declared variables as a POSIX
shell fragment (`env.sh` in the config directory, see `fragment_path()`). It
removes the fragment when there are no variables.

`inject_source_line` adds a line that sources the fragment to a shell rc
file, only once. `rc_files()` picks `~/.zshrc` for zsh and `~/.bashrc`
otherwise. `apply_env` does both steps. A failure to update an rc file is
only reported as a warning on stderr.

`env_status(spec_env, lock_env)` compares the manifest with the lock and marks
each variable `ok`, `modified`, `missing` or `extra`.

## Machine-readable output

`genv.output.write(stream, envelope)` writes an `Envelope` as a single compact
JSON line. `data` is left out when it is `None`, and `errors` when it is empty.
The result types (`PlanResult`, `StatusResult`, `ApplyResult`, `ScanResult`,
…) serialise with camelCase keys.

## What this package does not do

There is no command-line program. There is also no apply step that resolves
manifest entries to managers, installs or removes packages, starts services,
or writes the lock file from the result. The adapters build the commands and
query the system, but running the plans is left to the caller. Version
constraints in the manifest are stored as written and never evaluated.
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "genv"
version = "0.1.0"
description = "Declarative package, environment-variable, shell and service manifest for developer workstations"
requires-python = ">=3.10"
dependencies = []
keywords = ["package-manager", "dotfiles", "environment", "brew", "snap", "paru", "yay", "manifest"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Installation/Setup",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["genv"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

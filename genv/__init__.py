"""Workstation manifest library: packages, env vars, shell aliases, services and manager adapters."""

__version__ = "0.1.0"
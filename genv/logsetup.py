"""Process-wide logging configuration."""

from __future__ import annotations

import logging
import sys

_FORMAT = "time=%(asctime)s level=%(levelname)s msg=%(message)s"


def init(debug: bool) -> None:
    """Configure the root logger to write to stderr.

    With debug every DEBUG message is shown; otherwise only WARNING and above.
    Calling it again replaces the previous configuration.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format=_FORMAT,
        force=True,
    )
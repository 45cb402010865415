# SPDX-License-Identifier: Apache-2.0
"""Shared helpers for CLI entry points: logging setup and log sanitizing."""

from __future__ import annotations

import logging
import os
import re

VERBOSITY_ENV = "GLOBEVIEW_VERBOSITY"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "quiet": logging.ERROR,
}

_SENSITIVE_PARAMS = (
    "token",
    "access_token",
    "refresh_token",
    "signature",
    "x-amz-signature",
    "apikey",
    "api_key",
    "key",
    "access_key",
    "client_secret",
)

_USERINFO_RX = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)(?P<user>[^:/@\s]+):[^@/\s]+@")
_PARAM_RX = re.compile(
    r"(?P<name>(?<![A-Za-z0-9_-])(?:" + "|".join(re.escape(p) for p in _SENSITIVE_PARAMS) + r"))=[^&#\s]*",
    re.IGNORECASE,
)


def configure_logging_from_env(default: str = "info") -> int:
    """Configure root logging from ``GLOBEVIEW_VERBOSITY``.

    Recognized values are ``debug``, ``info`` and ``quiet``; anything else
    falls back to ``default``. Returns the level that was applied.
    """

    verbosity = (os.environ.get(VERBOSITY_ENV) or default).strip().lower()
    level = _LEVELS.get(verbosity, _LEVELS.get(default, logging.INFO))
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root.setLevel(level)
    return level


def sanitize_for_log(value: str) -> str:
    """Mask passwords embedded in URLs and common credential query params."""

    if not value:
        return value
    out = _USERINFO_RX.sub(lambda m: f"{m.group('scheme')}{m.group('user')}:***@", value)
    return _PARAM_RX.sub(lambda m: f"{m.group('name')}=***", out)

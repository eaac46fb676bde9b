"""Shared-secret authorization for the tiercascade API."""

from __future__ import annotations

import secrets

from tiercascade.keys import app_secret


def verify_secret(presented: str, expected: str | None = None) -> bool:
    """Constant-time comparison of the caller's secret with MY_APP_SECRET.

    An unset or empty server secret never authorizes anything.
    """
    expected = app_secret() if expected is None else expected
    if not expected or not presented:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))

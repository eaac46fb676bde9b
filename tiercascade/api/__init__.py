"""tiercascade HTTP API (FastAPI)."""

from tiercascade.api.main import create_app

__all__ = ["create_app"]

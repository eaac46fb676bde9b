"""tiercascade HTTP API.

FastAPI application exposing the cascade controller: a caller posts a
task with a requested tier and gets back the first completed answer, or
a 503 once every tier has been exhausted.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from tiercascade import __version__
from tiercascade.api.auth import verify_secret
from tiercascade.api.models import AskRequest, AskResponse, ErrorResponse, PackageEnvelope
from tiercascade.providers.litellm_provider import LiteLLMInvoker
from tiercascade.providers.registry import load_cascade_config, load_tier_map
from tiercascade.routing.engine import CascadeController
from tiercascade.routing.errors import CascadeExhaustedError

logger = logging.getLogger(__name__)


def build_controller() -> CascadeController:
    """Resolve configuration and build the process-wide controller.

    Raises:
        FileNotFoundError: If the config file is missing.
        TierConfigError: If a tier in range has no usable backend.
    """
    config = load_cascade_config()
    tier_map = load_tier_map(tier_count=config.tier_count)
    return CascadeController(tier_map, LiteLLMInvoker(tier_map, config), config)


def create_app(controller: CascadeController | None = None) -> FastAPI:
    """Create the API app.

    Args:
        controller: Pre-built controller (tests). When omitted, one is
            built from configuration at startup; configuration errors abort
            startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "controller", None) is None:
            app.state.controller = build_controller()
            logger.info(
                "Tier map loaded: %d tiers, strategy=%s",
                app.state.controller.tier_count,
                app.state.controller.config.strategy.value,
            )
        yield

    app = FastAPI(
        title="tiercascade",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.controller = controller

    # -----------------------------------------------------------------------
    # Cascade
    # -----------------------------------------------------------------------

    @app.post(
        "/ask-ai",
        response_model=AskResponse,
        responses={403: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    )
    async def ask_ai(body: AskRequest, request: Request):
        """Run one cascade session for the posted task."""
        if not verify_secret(body.secret):
            return JSONResponse(
                status_code=403,
                content=ErrorResponse(content="Unauthorized").model_dump(exclude={"attempts"}),
            )

        cascade: CascadeController = request.app.state.controller
        try:
            result = await cascade.run(body.complexity, body.prompt)
        except CascadeExhaustedError as e:
            return JSONResponse(
                status_code=503,
                content=ErrorResponse(
                    content="All tiers failed", attempts=e.attempts,
                ).model_dump(mode="json"),
            )

        return AskResponse(
            package=PackageEnvelope(package=result.package),
            tier=result.tier,
            attempts=result.attempts,
        )

    # -----------------------------------------------------------------------
    # Liveness
    # -----------------------------------------------------------------------

    @app.get("/wake", response_class=PlainTextResponse)
    async def wake() -> str:
        return f"tiercascade {__version__} active"

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()

"""
LLM Bridge HTTP Server

FastAPI application exposing a Bridge behind the OpenAI Chat, Anthropic
Messages and OpenAI Responses endpoints. Every endpoint converts its own
wire format to the configured upstream provider.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from llm_bridge.adapters.registry import create_adapter
from llm_bridge.bridge import Bridge, BridgeConfig
from llm_bridge.common.errors import LLMBridgeError
from llm_bridge.config import Settings, get_settings
from llm_bridge.logging_config import setup_logging

from .routes import router

logger = logging.getLogger(__name__)

BridgeFactory = Callable[[str], Bridge]


def default_bridge_factory(settings: Settings) -> BridgeFactory:
    """
    Build Bridges from the proxy settings.

    The returned factory takes the inbound adapter name of the endpoint.
    """

    def factory(inbound_name: str) -> Bridge:
        outbound = create_adapter(settings.PROXY_OUTBOUND)
        return Bridge(
            inbound=create_adapter(inbound_name),
            outbound=outbound,
            config=BridgeConfig(
                api_key=settings.PROXY_API_KEY,
                base_url=settings.PROXY_BASE_URL,
                timeout_ms=settings.HTTP_TIMEOUT_MS,
                max_retries=settings.HTTP_MAX_RETRIES,
            ),
            target_model=settings.PROXY_TARGET_MODEL,
            model_mapping=settings.model_mapping(),
        )

    return factory


class BridgeCache:
    """One Bridge per inbound adapter name, created on first use."""

    def __init__(self, factory: BridgeFactory):
        self._factory = factory
        self._bridges: Dict[str, Bridge] = {}

    def get(self, inbound_name: str) -> Bridge:
        if inbound_name not in self._bridges:
            self._bridges[inbound_name] = self._factory(inbound_name)
        return self._bridges[inbound_name]

    async def close(self) -> None:
        for bridge in self._bridges.values():
            await bridge.close()
        self._bridges.clear()


def create_app(
    settings: Optional[Settings] = None,
    bridge_factory: Optional[BridgeFactory] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Configuration, defaults to ``get_settings()``
        bridge_factory: Maps an inbound adapter name to a Bridge; defaults
            to one built from the ``PROXY_*`` settings
    """
    settings = settings or get_settings()
    bridges = BridgeCache(bridge_factory or default_bridge_factory(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await bridges.close()

    app = FastAPI(
        title=settings.APP_NAME,
        description="LLM protocol bridge compatible with OpenAI/Anthropic",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.bridges = bridges

    @app.exception_handler(LLMBridgeError)
    async def bridge_error_handler(request: Request, exc: LLMBridgeError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """
        Handle uncaught exceptions

        Stack traces are logged; only DEBUG mode returns them to the client.
        """
        logger.error(
            "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
            str(exc),
            request.url.path,
            traceback.format_exc(),
        )
        error = {
            "message": str(exc) if settings.DEBUG else "Internal server error",
            "type": "internal_error",
            "code": "internal_error",
        }
        return JSONResponse(status_code=500, content={"error": error})

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Used for service liveness probe."""
        return {"status": "healthy"}

    app.include_router(router)
    return app


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    setup_logging()
    uvicorn.run(create_app(), host=host, port=port, log_config=None)

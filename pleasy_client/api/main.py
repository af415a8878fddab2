"""Gateway application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from pleasy_client.api.middleware import MetricsMiddleware, RequestIDMiddleware
from pleasy_client.api.v1 import accounts, settlement, transactions
from pleasy_client.config import settings
from pleasy_client.domain.exceptions import BankAPIError
from pleasy_client.domain.settlement import SettlementRegistry
from pleasy_client.infrastructure.observability.logging import setup_logging

setup_logging(settings.log_level)


async def bank_unavailable(request: Request, exc: BankAPIError) -> JSONResponse:
    """Backend failures no endpoint handled itself"""
    logging.error(
        f"Unhandled backend failure: {exc}",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "status": exc.status_code},
    )
    return JSONResponse(status_code=503, content={"detail": "Banking service unavailable"})


def create_app() -> FastAPI:
    """Build the gateway with its own settlement registry"""
    app = FastAPI(
        title="Pleasy Banking Client Gateway",
        description="Account views, classified history and account settlement",
        version="0.1.0",
    )

    # One in-flight settlement per account, shared by every request
    app.state.settlement_registry = SettlementRegistry()

    # Last added runs first: request IDs exist before metrics are observed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(BankAPIError, bank_unavailable)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for module, tag in ((accounts, "accounts"), (transactions, "transactions"), (settlement, "settlement")):
        app.include_router(module.router, prefix="/v1", tags=[tag])

    return app


app = create_app()

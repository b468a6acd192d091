# ============================================================================
# BROKER GATEWAY - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Gateway application with broker connection lifecycle
# CREATED: 18 OCT 2026
# ============================================================================
"""
Broker Gateway Main Application

FastAPI application that:
1. Connects to RabbitMQ and declares the topic exchange
2. Publishes auth/log requests to the exchange
3. Forwards mail requests directly to the mailer service

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8080
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import get_settings
from gateway import GatewayDispatcher, gateway_router, set_gateway_services
from messaging import EventEmitter, connect, close_connection
from services import ServiceClient

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger, ComponentType

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__, ComponentType.GATEWAY)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Opens the broker connection on startup, closes it on shutdown.
    """
    settings = get_settings()
    logger.info(f"Starting Broker Gateway v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    connection = await connect(settings.broker)

    emitter = EventEmitter(connection, settings.broker.exchange_name)
    await emitter.setup()

    services = ServiceClient(settings.endpoints)

    set_gateway_services(
        dispatcher=GatewayDispatcher(emitter, services),
        config=settings.gateway,
    )
    logger.info("Gateway ready")

    yield

    logger.info("Shutting down Broker Gateway...")

    set_gateway_services(dispatcher=None)
    await emitter.close()
    await services.close()
    await close_connection(connection)

    logger.info("Broker Gateway stopped")


# Create FastAPI app
app = FastAPI(
    title="Broker Gateway",
    description=f"Epoch {EPOCH} action routing gateway",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https?://.*",  # any http(s) origin, echoed back for credentialed requests
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type", "X-CSRF-Token"],
    expose_headers=["Link"],
    max_age=300,
)

app.include_router(gateway_router)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    gateway_config = get_settings().gateway

    uvicorn.run(
        "main:app",
        host=gateway_config.host,
        port=gateway_config.port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )

# ============================================================================
# LISTENER MAIN ENTRY POINT
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Listener process entry point
# PURPOSE: Start the topic listener in standalone mode
# CREATED: 18 OCT 2026
# ============================================================================
"""
Listener Main Entry Point

Starts a listener process that:
1. Connects to RabbitMQ
2. Binds an exclusive queue to the requested topics
3. Forwards every message to the logger or auth service until shutdown

Usage:
    # With environment variables
    LISTENER_TOPICS="log.*,auth.*" python -m listener.main

    # Or with explicit topics
    python -m listener.main --topic "log.*" --topic "auth.*"

Environment Variables:
    RABBITMQ_URL: Broker connection string
    EXCHANGE_NAME: Topic exchange name (default "exchange")
    LISTENER_TOPICS: Comma-separated binding patterns
    LISTENER_MAX_WORKERS: Concurrent downstream calls
    LISTENER_QUEUE_SIZE: Messages buffered while workers are busy
    LISTENER_DROP_MALFORMED: "false" to dispatch undecodable messages as empty
    LISTENER_HEALTH_PORT: Port of the health server
    LOGGER_URL / AUTH_URL: Downstream service URLs
"""

import argparse
import asyncio
import os
import signal
import sys
from dataclasses import replace
from typing import List, Optional

from aiohttp import web

from __version__ import __version__, BUILD_DATE
from core.config import get_settings
from core.errors import BrokerConnectionError
from listener.consumer import Consumer, ConsumerState
from listener.dispatch import Dispatcher
from messaging import connect, close_connection
from services import ServiceClient

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger, ComponentType

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__, ComponentType.LISTENER)

# Listener state for health checks
_consumer: Optional[Consumer] = None


# ============================================================================
# HEALTH SERVER
# ============================================================================

async def health_handler(request):
    """
    Health check endpoint.

    Healthy while the consumer is subscribed; includes queue, topics and
    dispatch stats.
    """
    consuming = _consumer is not None and _consumer.state is ConsumerState.CONSUMING

    response_data = {
        "status": "healthy" if consuming else "unhealthy",
        "version": __version__,
        "build_date": BUILD_DATE,
        "consuming": consuming,
    }
    if _consumer is not None:
        response_data["stats"] = _consumer.stats()

    return web.json_response(response_data, status=200 if consuming else 503)


async def liveness_handler(request):
    return web.json_response({"status": "alive", "version": __version__})


async def start_health_server(port: int) -> web.AppRunner:
    """Start minimal HTTP server for health checks."""
    app = web.Application()
    app.router.add_get("/livez", liveness_handler)
    app.router.add_get("/readyz", health_handler)
    app.router.add_get("/health", health_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    logger.info(f"Health server started on port {port}")
    return runner


# ============================================================================
# MAIN
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Consume topics from the exchange and forward them to downstream services",
    )
    parser.add_argument(
        "--topic",
        dest="topics",
        action="append",
        help="Binding pattern, e.g. 'log.*' (repeatable; default from LISTENER_TOPICS)",
    )
    parser.add_argument(
        "--health-port",
        type=int,
        default=None,
        help="Health server port (default from LISTENER_HEALTH_PORT)",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    global _consumer

    args = parse_args(argv)
    settings = get_settings()
    config = settings.listener
    if args.topics:
        config = replace(config, topics=tuple(args.topics))
    if args.health_port is not None:
        config = replace(config, health_port=args.health_port)

    logger.info("=" * 60)
    logger.info(f"Listener Starting v{__version__}")
    logger.info("=" * 60)
    logger.info(f"Topics: {list(config.topics)}")
    logger.info(f"Max workers: {config.max_workers}, buffer: {config.queue_size}")

    health_runner = await start_health_server(config.health_port)

    try:
        connection = await connect(settings.broker)
    except BrokerConnectionError as e:
        logger.error(str(e))
        await health_runner.cleanup()
        sys.exit(1)

    services = ServiceClient(settings.endpoints)
    _consumer = Consumer(
        connection,
        Dispatcher(services),
        config=config,
        exchange_name=settings.broker.exchange_name,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _consumer.stop)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        await _consumer.setup()
        await _consumer.listen(config.topics)
    except ValueError as e:
        logger.error(f"Invalid topic configuration: {e}")
        sys.exit(2)
    except Exception as e:
        logger.exception(f"Listener failed: {e}")
        sys.exit(1)
    finally:
        await services.close()
        await close_connection(connection)
        await health_runner.cleanup()

    logger.info("Listener stopped")


def run() -> None:
    """Synchronous entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()

"""Main entry point: runs the daily schedulers until interrupted"""
import logging
import asyncio
import signal
from prometheus_client import start_http_server
from farmfocus import config
from farmfocus.config import validate_config, LOG_LEVEL
from farmfocus.db.connection import db
from farmfocus.observability.metrics import init_metrics
from farmfocus.services.container import init_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def create_store():
    """Store for the configured backend"""
    if config.STORE_BACKEND == "memory":
        from farmfocus.db.memory_store import MemoryStore
        logger.warning("Using in-memory store; all state is lost on exit")
        return MemoryStore()

    from farmfocus.db.queries import PostgresStore
    return PostgresStore(db)


async def main() -> None:
    """Main application entry point"""
    schedulers = None
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        # Validate configuration
        logger.info("Validating configuration...")
        validate_config()

        init_metrics(config.STORE_BACKEND)
        if config.METRICS_PORT:
            start_http_server(config.METRICS_PORT)
            logger.info(f"Serving Prometheus metrics on port {config.METRICS_PORT}")

        # Initialize database
        if config.STORE_BACKEND == "postgres":
            logger.info("Initializing database connection pool...")
            await db.init_pool()

        container = init_container(create_store())

        # Start daily sweeps
        logger.info("Starting daily schedulers...")
        schedulers = container.schedulers
        schedulers.start()

        # Keep running until interrupted
        logger.info("Engine is running. Press Ctrl+C to stop.")
        await stop.wait()
        logger.info("Shutting down...")

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        # Cleanup
        if schedulers:
            logger.info("Stopping schedulers...")
            await schedulers.stop()

        logger.info("Closing database connection...")
        await db.close_pool()

        logger.info("Shutdown complete")


def run() -> None:
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()

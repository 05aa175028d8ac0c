"""Main entry point for Webmail."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

import uvicorn

from .config import Config
from .database import Database, MessageRepository, UserRepository
from .users import UserService
from .web import create_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Webmail - messaging between registered users with a web UI and REST API"
    )
    parser.add_argument(
        "--config",
        "-c",
        default="config.json",
        help="Path to configuration file (default: config.json)",
    )
    return parser.parse_args()


class WebServer:
    """Wrapper for Uvicorn server with graceful shutdown support."""

    def __init__(self, app, host: str, port: int):
        self.config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="info",
            access_log=True,
        )
        self.server = uvicorn.Server(self.config)

    async def start(self) -> None:
        """Start the web server."""
        await self.server.serve()

    async def shutdown(self) -> None:
        """Signal the server to shutdown gracefully."""
        self.server.should_exit = True


async def main_async(config: Config) -> None:
    """Async main function running the web server until a shutdown signal."""
    # Initialize database
    db = Database(config.database.path)
    logger.info(f"Database initialized at: {config.database.path}")

    # Create repositories
    message_repo = MessageRepository(db)
    user_repo = UserRepository(db)

    # Ensure admin user exists
    UserService(user_repo).ensure_admin(
        config.admin.email,
        config.admin.password,
        config.admin.first_name,
        config.admin.last_name,
    )

    app = create_app(config, message_repo, user_repo)
    web_server = WebServer(app, config.web.host, config.web.port)

    shutdown_event = asyncio.Event()

    def signal_handler():
        if not shutdown_event.is_set():
            logger.info("Received shutdown signal, initiating graceful shutdown...")
            shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda s, f: signal_handler())

    logger.info(f"Starting Web server on {config.web.address}")
    web_task = asyncio.create_task(web_server.start())
    shutdown_task = asyncio.create_task(shutdown_event.wait())

    await asyncio.wait([web_task, shutdown_task], return_when=asyncio.FIRST_COMPLETED)

    logger.info("Shutting down web server...")
    await web_server.shutdown()
    if not web_task.done():
        try:
            await asyncio.wait_for(asyncio.shield(web_task), timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Web server did not stop in time, cancelling...")
            web_task.cancel()
            try:
                await web_task
            except asyncio.CancelledError:
                pass
    shutdown_task.cancel()

    db.close()
    logger.info("Shutdown complete")


def main() -> None:
    """Main entry point."""
    args = parse_args()

    config_path = Path(args.config)
    if not config_path.exists():
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(1)

    try:
        config = Config.load(str(config_path))
        logger.info(f"Configuration loaded from: {config_path}")
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    asyncio.run(main_async(config))


if __name__ == "__main__":
    main()

"""
Main entry point for Offer Notify.

Builds the components, wires them into the poll scheduler and runs
it until a shutdown signal is received.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from urllib.parse import urlparse

import aiosqlite
import coloredlogs
import yaml

from offer_notify.config import AppConfig, load_config
from offer_notify.exceptions import StartupError
from offer_notify.feed import RSSFeedSource
from offer_notify.ntfy import NtfyNotifier
from offer_notify.scheduler import PollScheduler
from offer_notify.storage import SeenStore

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


async def open_store(database_path: str | Path) -> SeenStore:
    """
    Open the seen-store, translating failures into StartupError.

    Parameters
    ----------
    database_path : str | Path
        Location of the SQLite database.

    Returns
    -------
    SeenStore
        An initialized store.
    """
    store = SeenStore(database_path)
    try:
        await store.initialize()
    except (aiosqlite.Error, OSError) as e:
        await store.close()
        raise StartupError(f"Failed to open database at {database_path}: {e}") from e
    return store


async def serve(config: AppConfig, stop: asyncio.Event) -> None:
    """
    Run the watcher until ``stop`` is set.

    Parameters
    ----------
    config : AppConfig
        Application configuration.
    stop : asyncio.Event
        Shutdown token.

    Raises
    ------
    StartupError
        If the notifier is not configured, the feed transport cannot be
        set up or the store cannot be opened.
    """
    if not config.ntfy.topic_url:
        raise StartupError("No ntfy topic URL configured (set ntfy.topic_url or NTFY_TOPIC_URL)")

    logger.info("Starting Offer Notify")

    proxy_url = config.feed.proxy
    if proxy_url:
        logger.info("Using proxy: %s", redact_proxy_url(proxy_url))

    source = RSSFeedSource(
        config.feed.url,
        timeout=config.feed.request_timeout,
        user_agent=config.feed.user_agent,
        proxy_url=proxy_url,
    )
    try:
        await source.open()
    except ValueError as e:
        await source.close()
        raise StartupError(f"Failed to initialize feed transport: {e}") from e

    try:
        store = await open_store(config.storage.database_path)
    except StartupError:
        await source.close()
        raise

    notifier = NtfyNotifier(config.ntfy, timeout=config.feed.request_timeout)
    scheduler = PollScheduler(store, source, notifier, interval=config.feed.check_interval)

    try:
        logger.info(
            "Watching %s every %ds (%d entries already seen)",
            config.feed.url,
            config.feed.check_interval,
            await store.get_seen_count(),
        )
        await scheduler.run(stop)
    finally:
        await source.close()
        await notifier.close()
        await store.close()
        logger.info("Offer Notify stopped")


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Watch an offers feed and send ntfy notifications",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to configuration file (optional)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    stop = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(serve(config, stop))
    except StartupError as e:
        logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.close()

    logger.info("Exiting...")


if __name__ == "__main__":
    main()

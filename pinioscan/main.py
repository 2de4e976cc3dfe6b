"""Entry point for the Pinioscan API service."""

import asyncio
import signal

from loguru import logger

from config.settings import settings
from pinioscan.api.server import run_api_server
from pinioscan.parsers.metrics import metrics
from pinioscan.utils.logger import setup_logger


def _log_configuration() -> None:
    sources = {
        "basescan": bool(settings.basescan_api_key),
        "pinion": bool(settings.pinion_api_url),
        "llm": bool(settings.openrouter_api_key),
        "attest": bool(settings.deployer_private_key and settings.pinioscan_contract_address),
    }
    enabled = ", ".join(f"{name}={'on' if on else 'off'}" for name, on in sources.items())
    logger.info(
        f"Sources: {enabled} | cache={settings.cache_backend} "
        f"policy={settings.scan_concurrency_policy}"
    )
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY not set: every report will use the fallback scorer")


async def main() -> None:
    setup_logger(
        json_logs=settings.log_json,
        level=settings.log_level,
        log_dir=settings.log_dir,
        secrets=(
            settings.deployer_private_key,
            settings.openrouter_api_key,
            settings.basescan_api_key,
            settings.pinion_api_key,
        ),
    )
    logger.info("Starting Pinioscan...")
    _log_configuration()

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    await run_api_server(shutdown_event)
    logger.info(f"Shutdown complete: {metrics.format_stats_line()}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()

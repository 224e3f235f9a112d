"""
Scheduler process entrypoint.

Builds the engine from settings, registers the built-in data sources, loads every
enabled cron subscription and runs until interrupted. Single active instance only:
running two processes against the same database fires every job twice.
"""
import asyncio
import logging
import signal
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend/ before any settings are read
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from scenecast.config import settings  # noqa: E402
from scenecast.orchestrator.engine import NotificationEngine  # noqa: E402
from scenecast.services.data_sources import register_builtin_sources  # noqa: E402

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


async def serve() -> None:
    engine = NotificationEngine.from_settings(settings)
    register_builtin_sources(engine.registry)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass

    registered = engine.start()
    print("\n" + "=" * 60)
    print(f"  SCHEDULER READY  {registered} cron subscriptions")
    print(f"  Data sources     {', '.join(engine.registered_handlers())}")
    print("=" * 60 + "\n")
    logger.info("Scheduler ready with %s cron subscriptions", registered)
    try:
        await stop.wait()
    finally:
        await engine.shutdown()
        logger.info("Scheduler shut down")


def main() -> None:
    configure_logging(settings.log_level)
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

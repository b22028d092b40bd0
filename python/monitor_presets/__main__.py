"""Run the monitor presets controller: ``python -m monitor_presets``."""

import asyncio

from dotenv import load_dotenv

from .core.app import PresetApp
from .core.http_api import serve
from .utils.config import get_config
from .utils.logger import configure_logger, get_logger


logger = get_logger("main")


async def run() -> None:
    config = get_config()
    configure_logger("DEBUG" if config.debug else "INFO")

    app = PresetApp(config)
    if not config.http_port:
        await app.run_forever()
        return

    await app.start()
    try:
        await serve(app)
    finally:
        await app.stop()


def main() -> None:
    load_dotenv()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()

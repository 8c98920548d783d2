#!/usr/bin/env python3
"""
Notice Render Server - Entry Point
Runs the FastAPI server; uvicorn delivers SIGTERM/SIGINT to the app lifespan,
which closes the shared browser before the process exits
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from notice_render.core.config import settings  # noqa: E402
from notice_render.core.logger import setup_logging  # noqa: E402


def run_server(host: str, port: int, log_level: str = "info"):
    """Run FastAPI server"""
    import uvicorn

    logger = logging.getLogger(__name__)

    logger.info("🖥️  Notice Render Server")
    logger.info(f"   📍 Address: {host}:{port}")
    logger.info(f"   📄 Page size: {settings.PAGE_SIZE}")
    logger.info(f"   ⏱️  Render timeout: {settings.RENDER_TIMEOUT}s")
    logger.info(f"   🌐 Browser warmup: {'Enabled' if settings.BROWSER_WARMUP else 'Lazy'}")

    logger.info("Starting server...")

    # Single worker: one process owns one browser
    uvicorn.run(
        "notice_render.server:app",
        host=host,
        port=port,
        workers=1,
        access_log=True,
        log_level=log_level,
        reload=False,
    )


def show_system_info():
    """Display configuration and browser availability"""
    logger = logging.getLogger(__name__)

    logger.info("📝 Notice Render Server Configuration")
    logger.info("=" * 50)

    for name, value in settings.model_dump().items():
        logger.info(f"   {name}: {value}")

    try:
        from playwright.sync_api import sync_playwright

        with sync_playwright() as p:
            logger.info(f"✅ Chromium executable: {p.chromium.executable_path}")
    except Exception as e:
        logger.warning(f"⚠️ Chromium not available: {e}")

    logger.info("=" * 50)


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Notice Render Server")

    parser.add_argument("--host", default=settings.HOST, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Bind port")
    parser.add_argument(
        "--log-level",
        default=settings.log_level.lower(),
        choices=["debug", "info", "warning", "error"],
        help="Logging level"
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Show configuration and exit"
    )

    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.info:
        show_system_info()
        return

    try:
        run_server(host=args.host, port=args.port, log_level=args.log_level)
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Server stopped by user")
    except Exception as e:
        logging.getLogger(__name__).error(f"Server failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

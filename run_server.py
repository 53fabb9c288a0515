#!/usr/bin/env python3
"""
Agentic Gateway - HTTP server launcher
Runs the FastAPI app under uvicorn
"""
import os
import sys

# Fix encoding issues on servers with ASCII locale
os.environ.setdefault('PYTHONIOENCODING', 'utf-8')

import asyncio
import logging
import uvicorn
from gateway.config import settings, mask_secret

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    logger.info("Starting Agentic Gateway...")
    logger.info(f"Python {sys.version}, encoding={sys.getdefaultencoding()}")
    logger.info(f"Model: {settings.chat_model} @ {settings.openai_base_url} "
                f"(key={mask_secret(settings.openai_api_key)})")
    logger.info(f"Project folder: {settings.workspace_root}")
    if not settings.weather_api_key:
        logger.warning("WEATHER_API_KEY not set; weather tool will report a configuration error")
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        logger.warning("Running as root: run_terminal_command executes with root privileges")

    config = uvicorn.Config(
        "gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())

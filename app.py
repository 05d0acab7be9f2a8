"""Run the ShopForge API under uvicorn"""

import os
from pathlib import Path
from typing import Any, Dict

import uvicorn
from dotenv import load_dotenv

from shopforge.utils.config import config_manager
from shopforge.utils.logger import get_logger, setup_logger

logger = get_logger(__name__)

env_path = Path(__file__).parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def server_options() -> Dict[str, Any]:
    """uvicorn keyword arguments from the environment; multiple workers only in production"""
    settings = config_manager.settings
    environment = os.getenv("ENVIRONMENT", settings.app.environment).lower()
    workers = int(os.getenv("WORKERS", "2"))
    return {
        "host": os.getenv("HOST", "127.0.0.1"),
        "port": int(os.getenv("PORT", "8001")),
        "workers": workers if environment == "production" else 1,
        "log_level": settings.logging.level.lower(),
        "access_log": True,
    }


def main():
    settings = config_manager.settings
    setup_logger(log_level=settings.logging.level, log_format=settings.logging.format)
    options = server_options()
    logger.info("Starting ShopForge API", **options)
    uvicorn.run("web.main:app", **options)


if __name__ == "__main__":
    main()

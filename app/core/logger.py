# app/core/logger.py
from loguru import logger
import sys
import os

from app.config import settings

# log directory
LOG_DIR = settings.log_dir
os.makedirs(LOG_DIR, exist_ok=True)

# drop the default sink
logger.remove()

# console (development)
logger.add(
    sys.stdout,
    colorize=True,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level=settings.log_level
)

# file (everything)
logger.add(
    f"{LOG_DIR}/snagcapture.log",
    rotation="10 MB",
    retention="30 days",
    compression="zip",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    level="DEBUG"
)

# errors only
logger.add(
    f"{LOG_DIR}/error.log",
    rotation="10 MB",
    retention="30 days",
    compression="zip",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    level="ERROR"
)

# photo storage maintenance (orphan sweeps, clear-all), bound with storage=True
logger.add(
    f"{LOG_DIR}/storage.log",
    rotation="10 MB",
    retention="90 days",
    compression="zip",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
    level="INFO",
    filter=lambda record: record["extra"].get("storage", False)
)

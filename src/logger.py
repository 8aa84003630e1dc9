import logging
from logging.handlers import RotatingFileHandler
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from .config import settings

LOGGER_NAME = "voice-scheduler"

def setup_logging():
    """Configures Sentry and Local File Logging."""

    # 1. Initialize Sentry
    if settings.SENTRY_DSN and settings.SENTRY_DSN.startswith("http"):
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            traces_sample_rate=1.0,
            send_default_pii=False # Callers' emails and phone numbers stay out of Sentry
        )

    # 2. Define Format
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    # 3. Local File Handler
    file_handler = RotatingFileHandler(
        settings.LOG_FILE,
        maxBytes=5*1024*1024,
        backupCount=3
    )
    file_handler.setFormatter(formatter)

    # 4. Stream Handler (Console)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    # 5. Service Logger Configuration
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # Avoid duplicate logs if setup is called twice
    if not logger.handlers:
        logger.addHandler(file_handler)
        logger.addHandler(stream_handler)

    # googleapiclient is chatty about discovery caching
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    return logger

# Create the logger instance to be imported elsewhere
logger = setup_logging()

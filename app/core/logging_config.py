import os

from loguru import logger

from app.core.config import LOG_DIR, LOG_LEVEL, LOG_RETENTION

LOG_FORMAT = "{time} | {level} | {extra[log_type]} | {message}"

# log_type -> file; anything bound to one of these also lands in app.log
CHANNEL_FILES = {
    "booking": "bookings.log",
    "payment": "payments.log",
    "service": "service_orders.log",
}

os.makedirs(LOG_DIR, exist_ok=True)

logger.remove()
logger.configure(extra={"log_type": "app"})

logger.add(
    os.path.join(LOG_DIR, "app.log"),
    rotation="1 week",
    retention=LOG_RETENTION,
    level=LOG_LEVEL,
    enqueue=True,
    format=LOG_FORMAT,
)


def _channel_filter(log_type):
    return lambda record: record["extra"].get("log_type") == log_type


for _log_type, _filename in CHANNEL_FILES.items():
    logger.add(
        os.path.join(LOG_DIR, _filename),
        rotation="1 week",
        retention=LOG_RETENTION,
        level=LOG_LEVEL,
        enqueue=True,
        filter=_channel_filter(_log_type),
        format=LOG_FORMAT,
    )

# Transaction retries and unexpected failures
logger.add(
    os.path.join(LOG_DIR, "errors.log"),
    rotation="1 week",
    retention="8 weeks",
    level="WARNING",
    enqueue=True,
    format=LOG_FORMAT,
)


def get_logger(log_type=None):
    """Shared loguru logger, optionally bound to one of CHANNEL_FILES."""
    if log_type is None:
        return logger
    return logger.bind(log_type=log_type)

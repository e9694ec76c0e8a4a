import logging

import structlog
from structlog.types import EventDict, WrappedLogger

from tourguide.utils import mask_token

# Driver loggers that flood debug output with topology and pool chatter
NOISY_LOGGERS = ("pymongo", "pymongo.topology", "pymongo.connection", "pymongo.serverSelection", "pymongo.command")

# Event keys whose values are bearer credentials
CREDENTIAL_KEYS = frozenset({"sid", "token", "refresh_token", "device_key", "signature"})


def mask_credentials(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Shorten credential values that reached a log call unmasked."""
    for key in CREDENTIAL_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str) and not value.endswith("...") and value != "***":
            event_dict[key] = mask_token(value)
    return event_dict


def setup_logging(debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        mask_credentials,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Console output while developing, one JSON object per line otherwise
    renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

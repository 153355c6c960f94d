import logging, sys
from typing import Optional

from brandprofile.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
# chatty transport loggers, only interesting when debugging the classifier call
QUIET_LOGGERS = ["httpx", "httpcore"]

def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Route brandprofile logs to stdout; safe to call more than once."""
    level_name = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(level_name)
    if not any(getattr(h, "_brandprofile", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._brandprofile = True
        root.addHandler(handler)
    noisy = logging.DEBUG if settings.DEBUG_BRANDING else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(noisy)
    return logging.getLogger("brandprofile")

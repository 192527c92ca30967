# psi_report/core/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs every request line (with query string) at INFO, which would leak the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)

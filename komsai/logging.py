"""Process-wide logging: one stdout stream for uvicorn, the app and the push stack."""
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# Per-request chatter from the HTTP clients under pywebpush and the store client
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore")


def setup_logging(level: int | str = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "komsai"):
        logging.getLogger(name).setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

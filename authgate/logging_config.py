# authgate/logging_config.py

"""
JSON log output for authgate.

Every record goes to stdout as one JSON object. Whatever a module passes in
`extra=` (path, reason, strategy, request_id) becomes a top-level key, so a
rejected token can be found by `reason` without parsing messages.
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single JSON stdout handler on the root logger at `level`."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

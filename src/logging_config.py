"""
Logging configuration shared by the registry tools and scripts.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False, stream=None) -> None:
    """
    Configure the root logger with a single console handler.

    Args:
        verbose: Log at DEBUG instead of WARNING
        stream: Output stream (default: stderr)
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Keep urllib3 connection chatter out of verbose output
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)

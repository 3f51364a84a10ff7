"""
Core package for the operations board application.

Submodules provide upstream data access, row enrichment, sorting, filtering,
live clocks and user interface rendering helpers that are orchestrated by the
top-level `app.py`.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

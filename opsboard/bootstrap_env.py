"""
Environment bootstrap for the board, run before settings are read.

Settings live in `OPSBOARD_*` environment variables. On Streamlit Cloud they can
come from `st.secrets` instead, either as top-level `OPSBOARD_*` keys or as an
`[opsboard]` table (`api_base` becomes `OPSBOARD_API_BASE`). A local `.env`
file is loaded last; nothing already set is overridden.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Iterator, Mapping, Tuple

import streamlit as st
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "OPSBOARD"
SECRETS_TABLE = "opsboard"


def _env_name(*parts: str) -> str:
    joined = "_".join(part for part in parts if part)
    return re.sub(r"[^A-Za-z0-9_]", "_", joined.upper())


def board_secrets(secrets: Mapping[str, Any]) -> Iterator[Tuple[str, str]]:
    """Environment pairs for every board setting found in a secrets mapping."""
    for key, value in secrets.items():
        if key.lower() == SECRETS_TABLE and isinstance(value, Mapping):
            for child, child_value in value.items():
                yield _env_name(ENV_PREFIX, child), str(child_value)
        elif _env_name(key).startswith(f"{ENV_PREFIX}_"):
            yield _env_name(key), str(value)


def _read_secrets() -> Dict[str, Any]:
    try:
        return st.secrets.to_dict()
    except FileNotFoundError as exc:
        # No secrets.toml outside Streamlit Cloud; newer releases also report parse errors here
        logger.debug("No Streamlit secrets loaded: %s", exc)
        return {}
    except ValueError as exc:
        # TOML decode errors subclass ValueError
        logger.warning("Ignoring unreadable Streamlit secrets: %s", exc)
        return {}


def ensure_env() -> None:
    """Idempotent; safe inside and outside the Streamlit runtime."""
    for name, value in board_secrets(_read_secrets()):
        os.environ.setdefault(name, value)
    load_dotenv()


ensure_env()

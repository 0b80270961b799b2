"""
utils.py
Logging setup and small parsing helpers.
"""

import json, logging

from . import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def setup_logging(level=None):
    # Configure root logger once; later calls only adjust the level.
    level = (level or config.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)

def mask_key(code: str) -> str:
    # Short, log-safe form of an API key.
    if not code:
        return "<none>"
    return code[:6] + "…" if len(code) > 6 else "***"

def parse_json(s, default=None):
    # Decode a JSON column value; falls back to {} on bad input.
    if isinstance(s, (dict, list)):
        return s
    try:
        return json.loads(s)
    except (TypeError, ValueError):
        return {} if default is None else default

"""
keys.py
API key selection and rotation.

A ``Key`` is picked from the worker or non-worker pool at the start of a
run and handed to every fetch call. When YouTube reports the key's quota
as spent, ``rotate`` expires it in the store and returns a replacement;
the old ``Key`` value is never mutated.
"""

import logging

from . import store
from .errors import NoKeyAvailable
from .models import Key
from .utils import mask_key

logger = logging.getLogger(__name__)


def select_initial_key(is_worker: bool = False) -> Key:
    # First unexpired key of the requested pool, or NoKeyAvailable.
    rows = store.choose_key(is_worker=is_worker)
    if not rows:
        logger.warning(f"No unexpired key in {'worker' if is_worker else 'default'} pool")
        raise NoKeyAvailable()
    key = Key(code=rows[0]["key_code"], is_worker=bool(is_worker))
    logger.info(f"Using key {mask_key(key.code)} (worker={key.is_worker})")
    return key


def rotate(key: Key, quota_exhausted: bool) -> Key:
    # Expire the spent key (quota case only) and pick a replacement from the same pool.
    if quota_exhausted:
        store.mark_key_expired(key.code)
        logger.warning(f"Key {mask_key(key.code)} marked expired (quota exceeded)")
    new_key = select_initial_key(key.is_worker)
    logger.info(f"Rotated key {mask_key(key.code)} -> {mask_key(new_key.code)}")
    return new_key

"""
service.py
Business logic layer between FastAPI routes and the tracker core (tracker/*).
Turns tracker exceptions into the {"error": ..., "details": ...} payload
the routes return.
"""

import logging
from typing import Dict, Optional

from tracker import channels, reconcile, store
from tracker.channels import check_key
from tracker.errors import ChannelNotFound, MalformedInput, TrackerError

logger = logging.getLogger(__name__)

def add_channel(url: Optional[str], youtube_channel_id: Optional[str],
                user_id: Optional[str] = None, is_worker: bool = False) -> Dict:
    # Register a channel and run its first reconciliation.
    try:
        return channels.add_channel(url=url, youtube_channel_id=youtube_channel_id,
                                    user_id=user_id, is_worker=is_worker)
    except TrackerError as e:
        logger.info(f"add_channel rejected: {e.message}")
        return e.to_payload()

def get_channel(channel_id: int) -> Dict:
    try:
        return channels.get_channel(channel_id)
    except ChannelNotFound as e:
        return e.to_payload()

def reload_channel(channel_id: int, is_worker: bool = False) -> Dict:
    # Re-run reconciliation for a tracked channel.
    item = store.get_channel_by_id(channel_id)
    if not item:
        return ChannelNotFound().to_payload()
    try:
        return reconcile.reload_channel_data(channel_id, item["youtube_channel_id"], is_worker)
    except TrackerError as e:
        logger.warning(f"Reload of channel {channel_id} failed: {e.message}")
        return e.to_payload()

def add_key(code: str, is_worker: bool = False) -> Dict:
    if not check_key(code):
        return MalformedInput("Key is not correct").to_payload()
    store.add_key(code, is_worker=is_worker)
    return {"ok": True}

def reset_keys(is_worker: Optional[bool] = None) -> Dict:
    return {"ok": True, "reset": store.reset_keys(is_worker)}

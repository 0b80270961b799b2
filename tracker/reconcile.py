"""
reconcile.py
Channel reconciliation: fetch a fresh snapshot from YouTube, diff it against
the stored one and apply the result.

Nothing is written until the channel, every search page and every detail
batch have been fetched, so a failed run leaves the store untouched.
"""

import logging
from typing import Dict, List

from . import autotags, keys, store, youtube
from .errors import ProviderError
from .models import Diff

logger = logging.getLogger(__name__)

FETCH_ERROR = "Problem during fetching data from Youtube"


def videos_diff(current: List[Dict], fresh: List[Dict]) -> Diff:
    """Classify video ids as deleted, updated or inserted.

    Ids only in ``current`` are deleted, ids in both are updated (no field
    comparison), ids only in ``fresh`` are inserted. Each list keeps the
    iteration order of the snapshot it came from.
    """
    fresh_ids = {v["youtube_video_id"] for v in fresh}
    current_ids = {v["youtube_video_id"] for v in current}
    result = Diff()
    for v in current:
        vid = v["youtube_video_id"]
        if vid in fresh_ids:
            result.update.append(vid)
        else:
            result.delete.append(vid)
    for v in fresh:
        if v["youtube_video_id"] not in current_ids:
            result.insert.append(v["youtube_video_id"])
    return result


def reload_channel_data(channel_id: int, youtube_channel_id: str, is_worker: bool = False) -> Dict:
    """Re-fetch a channel and its videos and reconcile them with the store.

    Returns ``{"videos": {"new": n, "updated": n, "deleted": n}}``. Raises
    ``NoKeyAvailable`` when the key pool runs dry and ``ProviderError`` (with
    the generic fetch message) for any other failure while talking to YouTube.
    """
    key = keys.select_initial_key(is_worker)
    try:
        channel_item, video_items, key = youtube.fetch_channel_data(youtube_channel_id, key)
        channel = youtube.parse_channel(channel_item, channel_id)
        videos = youtube.parse_videos(video_items, channel_id)
    except ProviderError as e:
        logger.warning(f"Fetch failed for channel {channel_id} ({youtube_channel_id}): {e.message}")
        raise ProviderError(FETCH_ERROR, details=e.message, code=e.code, reason=e.reason) from e

    current = store.get_videos(channel_id, ignore_active_flag=True)
    store.update_channel(channel)

    diff = videos_diff(current, videos)
    store.update_videos(channel_id, diff, videos)
    autotags.create_auto_tags(diff, videos)
    store.stat_save_previous(channel_id)

    summary = diff.summary()
    logger.info(f"Reconciled channel {channel_id} ({youtube_channel_id}): {summary}")
    return {"videos": summary}

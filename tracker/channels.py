"""
channels.py
Helpers for validating channel references and registering channels for tracking.
"""

import logging, re
from typing import Dict, Optional
from urllib.parse import urlparse

from . import reconcile, stats, store
from .errors import ChannelNotFound, DuplicateChannel, MalformedInput
from .utils import parse_json

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"[-a-zA-Z0-9@:%._\+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_\+.~#?&//=]*)?", re.I)
_CHANNEL_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{3,}$")
_TAG_RE = re.compile(r"^[a-zA-Zа-яА-ЯёЁ0-9 ]+$")
_KEY_RE = re.compile(r"^[a-zA-Z0-9_-]+$")

def check_url(value) -> bool:
    return bool(_URL_RE.search(str(value)))

def check_channel_id(value) -> bool:
    return bool(_CHANNEL_ID_RE.match(str(value)))

def check_tag(value) -> bool:
    return bool(_TAG_RE.match(str(value)))

def check_key(value) -> bool:
    return bool(_KEY_RE.match(str(value)))

def get_channel_id(channel_url: str) -> Optional[str]:
    # Channel id from a /channel/<id> URL, or None.
    if not channel_url:
        return None
    u = urlparse(channel_url if "//" in channel_url else "//" + channel_url)
    parts = (u.path or "").split("/")
    for i, p in enumerate(parts):
        if p.lower() != "channel" or i + 1 >= len(parts) or not parts[i + 1]:
            continue
        if check_channel_id(parts[i + 1]):
            return parts[i + 1]
    return None

def resolve_channel_ref(url: Optional[str] = None, youtube_channel_id: Optional[str] = None) -> str:
    # Validate user input and return the YouTube channel id it names.
    if not url and not youtube_channel_id:
        raise MalformedInput("No channel URL or channel id")
    # A URL is always validated when present, even if an explicit id wins.
    if url and not check_url(url):
        raise MalformedInput("Channel URL is not correct")
    if youtube_channel_id:
        if not check_channel_id(youtube_channel_id):
            raise MalformedInput("Channel Id is not correct")
        return youtube_channel_id
    cid = get_channel_id(url)
    if not cid:
        raise MalformedInput("Channel id not found in the URL")
    return cid

def add_channel(url=None, youtube_channel_id=None, user_id=None, is_worker=False) -> Dict:
    """Start tracking a channel and run its first reconciliation.

    An inactive channel with the same YouTube id is switched back on instead of
    duplicated; an active one is rejected. A brand-new channel only becomes
    active once its first reconciliation succeeds.
    """
    youtube_channel_id = resolve_channel_ref(url, youtube_channel_id)

    existing = store.get_channel_by_youtube_id(youtube_channel_id)
    if existing:
        if existing["isactive"]:
            raise DuplicateChannel()
        store.set_channel_active(existing["channel_id"])
        channel_id, is_new = existing["channel_id"], False
    else:
        channel_id, is_new = store.add_channel(youtube_channel_id, user_id=user_id), True
        logger.info(f"Registered channel {youtube_channel_id} as {channel_id}")

    result = reconcile.reload_channel_data(channel_id, youtube_channel_id, is_worker)

    if is_new:
        store.set_channel_active(channel_id)

    return {"channel_id": channel_id, "youtube_channel_id": youtube_channel_id, "videos": result["videos"]}

def get_channel(channel_id: int) -> Dict:
    # Public shape of a stored channel.
    item = store.get_channel_by_id(channel_id)
    if not item:
        raise ChannelNotFound()
    return {
        "channelId": item["channel_id"],
        "title": item["channel_title"],
        "description": item["channel_description"],
        "youtubeChannelId": item["youtube_channel_id"],
        "thumbnails": parse_json(item["thumbnails"]),
        "videos": item["videos"],
        "views": item["views"],
        "subscribers": item["subscribers"],
        "comments": item["comments"],
        "created": item["created"],
        "lang": item["lang"],
        "updated": item["updated"],
        "growth": stats.channel_growth(store.get_previous_stats(channel_id, limit=2)),
    }

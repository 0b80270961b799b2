"""
autotags.py
Derive tags from video titles and bind them to videos.
"""

import logging, re
from typing import Dict, Iterable, List

from . import store

logger = logging.getLogger(__name__)

# Anything that is not a Latin/Cyrillic letter, a digit or whitespace
_STRIP_RE = re.compile(r"[^a-zA-Z0-9а-яА-ЯёЁ\s]")

def tag_candidates(title: str, exceptions: Iterable[str] = ()) -> List[str]:
    # Cleaned, lowercased title tokens minus exceptions; duplicates are kept in order.
    excluded = {e.strip().lower() for e in exceptions}
    out = []
    for token in _STRIP_RE.sub("", title or "").split():
        tag = token.strip().lower()
        if not tag or tag in excluded:
            continue
        out.append(tag)
    return out

def create_auto_tags(diff, videos: List[Dict]):
    # Re-tag every fresh video that survived reconciliation.
    exceptions = store.get_tags_exceptions()
    deleted = set(diff.delete)
    tagged = 0
    for v in videos:
        vid = v["youtube_video_id"]
        if vid in deleted:
            continue
        ids = [store.add_tag_special(tag) for tag in tag_candidates(v.get("video_title"), exceptions)]
        store.bind_tags_bulk(vid, ids)
        tagged += 1
    logger.debug(f"Auto-tagged {tagged} videos")

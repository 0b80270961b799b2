"""
store.py
Data persistence layer for the channel tracker:
- SQLite database (API keys, channels, channel stats, videos, tags)
- Key pool selection/expiry used by credential rotation
- Snapshot read + diff application for video reconciliation
"""

import sqlite3, time, json
from contextlib import closing
from typing import Dict, Iterable, List, Optional

from . import config

# Paths
DATA_DIR = config.DATA_DIR
DB_PATH = DATA_DIR / config.DB_NAME

VIDEO_COLUMNS = (
    "channel_id", "youtube_video_id", "youtube_channel_id", "video_title", "video_description",
    "duration", "thumbnails", "published", "views", "comments", "likes", "dislikes",
)

CHANNEL_COLUMNS = (
    "channel_id", "youtube_channel_id", "user_id", "channel_title", "channel_description",
    "published", "thumbnails", "videos", "views", "comments", "subscribers", "lang",
    "isactive", "created", "updated",
)

# Connection
def get_conn():
    # Open SQLite connection (WAL mode). Writers wait on each other instead of failing.
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH, timeout=30)
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn

def _dicts(cur, rows):
    cols = [c[0] for c in cur.description]
    return [dict(zip(cols, r)) for r in rows]

# Schema init
def init_db():
    # Create tables/indexes if missing.
    with closing(get_conn()) as conn:
        cur = conn.cursor()

        cur.execute("""
        CREATE TABLE IF NOT EXISTS api_keys (
          key_code TEXT PRIMARY KEY,
          is_worker INTEGER DEFAULT 0,
          expired INTEGER DEFAULT 0,
          expired_at INTEGER,
          noted_at INTEGER
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS channels (
          channel_id INTEGER PRIMARY KEY AUTOINCREMENT,
          youtube_channel_id TEXT UNIQUE NOT NULL,
          user_id TEXT,
          channel_title TEXT,
          channel_description TEXT,
          published TEXT,
          thumbnails TEXT,
          videos INTEGER DEFAULT 0,
          views INTEGER DEFAULT 0,
          comments INTEGER DEFAULT 0,
          subscribers INTEGER DEFAULT 0,
          lang TEXT,
          isactive INTEGER DEFAULT 0,
          created INTEGER,
          updated INTEGER
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS channel_stats (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          channel_id INTEGER,
          ts INTEGER,
          videos INTEGER,
          views INTEGER,
          comments INTEGER,
          subscribers INTEGER,
          video_views INTEGER
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS videos (
          channel_id INTEGER NOT NULL,
          youtube_video_id TEXT NOT NULL,
          youtube_channel_id TEXT,
          video_title TEXT,
          video_description TEXT,
          duration INTEGER DEFAULT 0,
          thumbnails TEXT,
          published TEXT,
          views INTEGER DEFAULT 0,
          comments INTEGER DEFAULT 0,
          likes INTEGER DEFAULT 0,
          dislikes INTEGER DEFAULT 0,
          updated INTEGER,
          PRIMARY KEY (channel_id, youtube_video_id)
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS tags (
          tag_id INTEGER PRIMARY KEY AUTOINCREMENT,
          tag_text TEXT UNIQUE NOT NULL
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS tag_exceptions (
          tag_text TEXT PRIMARY KEY
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS video_tags (
          youtube_video_id TEXT NOT NULL,
          tag_id INTEGER NOT NULL,
          PRIMARY KEY (youtube_video_id, tag_id)
        )""")

        # indexes
        cur.execute("CREATE INDEX IF NOT EXISTS idx_keys_pool ON api_keys(is_worker, expired)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_stats_channel ON channel_stats(channel_id, ts)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_video_tags_tag ON video_tags(tag_id)")

        conn.commit()

# API keys

def add_key(code: str, is_worker: bool = False):
    # Register a key (re-adding an existing key just moves it between pools).
    with closing(get_conn()) as conn, conn:
        conn.execute("""
        INSERT INTO api_keys (key_code, is_worker, expired, noted_at) VALUES (?,?,0,?)
        ON CONFLICT(key_code) DO UPDATE SET is_worker=excluded.is_worker
        """, (code, int(bool(is_worker)), int(time.time())))

def choose_key(is_worker: bool = False) -> List[Dict]:
    # Return [first unexpired key of the pool] or [].
    with closing(get_conn()) as conn:
        cur = conn.execute(
            "SELECT key_code, is_worker FROM api_keys WHERE expired=0 AND is_worker=? ORDER BY rowid LIMIT 1",
            (int(bool(is_worker)),)
        )
        return _dicts(cur, cur.fetchall())

def mark_key_expired(code: str):
    # Expire a key for every caller sharing this database; committed immediately.
    with closing(get_conn()) as conn, conn:
        conn.execute("UPDATE api_keys SET expired=1, expired_at=? WHERE key_code=?", (int(time.time()), code))

def reset_keys(is_worker: Optional[bool] = None) -> int:
    # Clear the expired flag (all keys, or one pool). Returns rows touched.
    with closing(get_conn()) as conn, conn:
        if is_worker is None:
            cur = conn.execute("UPDATE api_keys SET expired=0, expired_at=NULL WHERE expired=1")
        else:
            cur = conn.execute(
                "UPDATE api_keys SET expired=0, expired_at=NULL WHERE expired=1 AND is_worker=?",
                (int(bool(is_worker)),)
            )
        return cur.rowcount

def list_keys() -> List[Dict]:
    with closing(get_conn()) as conn:
        cur = conn.execute("SELECT key_code, is_worker, expired, expired_at FROM api_keys ORDER BY rowid")
        return _dicts(cur, cur.fetchall())

# Channels

def add_channel(youtube_channel_id: str, user_id: Optional[str] = None) -> int:
    # Create an inactive channel row; returns its local id.
    now = int(time.time())
    with closing(get_conn()) as conn, conn:
        cur = conn.execute(
            "INSERT INTO channels (youtube_channel_id, user_id, isactive, created, updated) VALUES (?,?,0,?,?)",
            (youtube_channel_id, user_id, now, now)
        )
        return cur.lastrowid

def get_channel_by_id(channel_id: int) -> Optional[Dict]:
    with closing(get_conn()) as conn:
        cur = conn.execute(f"SELECT {','.join(CHANNEL_COLUMNS)} FROM channels WHERE channel_id=?", (channel_id,))
        rows = _dicts(cur, cur.fetchall())
    return rows[0] if rows else None

def get_channel_by_youtube_id(youtube_channel_id: str) -> Optional[Dict]:
    with closing(get_conn()) as conn:
        cur = conn.execute(
            f"SELECT {','.join(CHANNEL_COLUMNS)} FROM channels WHERE youtube_channel_id=?",
            (youtube_channel_id,)
        )
        rows = _dicts(cur, cur.fetchall())
    return rows[0] if rows else None

def set_channel_active(channel_id: int, active: bool = True):
    with closing(get_conn()) as conn, conn:
        conn.execute(
            "UPDATE channels SET isactive=?, updated=? WHERE channel_id=?",
            (int(bool(active)), int(time.time()), channel_id)
        )

def list_active_channels() -> List[Dict]:
    with closing(get_conn()) as conn:
        cur = conn.execute(
            "SELECT channel_id, youtube_channel_id, channel_title FROM channels WHERE isactive=1 ORDER BY channel_id"
        )
        return _dicts(cur, cur.fetchall())

def update_channel(data: Dict) -> Optional[Dict]:
    # Overwrite channel metadata from a fresh fetch and return the stored row.
    with closing(get_conn()) as conn, conn:
        conn.execute("""
        UPDATE channels SET
          channel_title=?, channel_description=?, published=?, thumbnails=?,
          videos=?, views=?, comments=?, subscribers=?, updated=?
        WHERE channel_id=?
        """, (
            data.get("channel_title") or "",
            data.get("channel_description") or "",
            data.get("published") or "",
            json.dumps(data.get("thumbnails") or {}),
            int(data.get("videos") or 0),
            int(data.get("views") or 0),
            int(data.get("comments") or 0),
            int(data.get("subscribers") or 0),
            int(time.time()),
            data["channel_id"],
        ))
    return get_channel_by_id(data["channel_id"])

def stat_save_previous(channel_id: int):
    # Snapshot current channel totals so later reports can compare periods.
    with closing(get_conn()) as conn, conn:
        conn.execute("""
        INSERT INTO channel_stats (channel_id, ts, videos, views, comments, subscribers, video_views)
        SELECT c.channel_id, ?, c.videos, c.views, c.comments, c.subscribers,
               (SELECT COALESCE(SUM(v.views), 0) FROM videos v WHERE v.channel_id = c.channel_id)
        FROM channels c WHERE c.channel_id=?
        """, (int(time.time()), channel_id))

def get_previous_stats(channel_id: int, limit: int = 10) -> List[Dict]:
    # Most recent snapshots first.
    with closing(get_conn()) as conn:
        cur = conn.execute("""
        SELECT ts, videos, views, comments, subscribers, video_views
        FROM channel_stats WHERE channel_id=? ORDER BY ts DESC, id DESC LIMIT ?
        """, (channel_id, limit))
        return _dicts(cur, cur.fetchall())

# Video storage

def get_videos(channel_id: int, ignore_active_flag: bool = False) -> List[Dict]:
    # Stored snapshot for a channel, in insertion order.
    sql = f"""
        SELECT {','.join('v.' + c for c in VIDEO_COLUMNS)}
        FROM videos v JOIN channels c ON c.channel_id = v.channel_id
        WHERE v.channel_id=?
    """
    if not ignore_active_flag:
        sql += " AND c.isactive=1"
    sql += " ORDER BY v.rowid"
    with closing(get_conn()) as conn:
        cur = conn.execute(sql, (channel_id,))
        rows = _dicts(cur, cur.fetchall())
    for r in rows:
        r["thumbnails"] = json.loads(r["thumbnails"]) if r["thumbnails"] else {}
    return rows

def update_videos(channel_id: int, diff, videos: Iterable[Dict]):
    # Apply a reconciliation diff in one transaction: delete, then upsert inserted/updated rows.
    keep = set(diff.insert) | set(diff.update)
    now = int(time.time())
    with closing(get_conn()) as conn, conn:
        for vid in diff.delete:
            conn.execute("DELETE FROM videos WHERE channel_id=? AND youtube_video_id=?", (channel_id, vid))
            conn.execute("DELETE FROM video_tags WHERE youtube_video_id=?", (vid,))
        for v in videos:
            if v["youtube_video_id"] not in keep:
                continue
            conn.execute("""
            INSERT INTO videos
              (channel_id,youtube_video_id,youtube_channel_id,video_title,video_description,
               duration,thumbnails,published,views,comments,likes,dislikes,updated)
            VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?)
            ON CONFLICT(channel_id, youtube_video_id) DO UPDATE SET
              youtube_channel_id=excluded.youtube_channel_id,
              video_title=excluded.video_title,
              video_description=excluded.video_description,
              duration=excluded.duration,
              thumbnails=excluded.thumbnails,
              published=excluded.published,
              views=excluded.views,
              comments=excluded.comments,
              likes=excluded.likes,
              dislikes=excluded.dislikes,
              updated=excluded.updated
            """, (
                channel_id,
                v["youtube_video_id"],
                v.get("youtube_channel_id") or "",
                v.get("video_title") or "",
                v.get("video_description") or "",
                int(v.get("duration") or 0),
                json.dumps(v.get("thumbnails") or {}),
                v.get("published") or "",
                int(v.get("views") or 0),
                int(v.get("comments") or 0),
                int(v.get("likes") or 0),
                int(v.get("dislikes") or 0),
                now,
            ))

# Tags

def get_tags_exceptions() -> List[str]:
    with closing(get_conn()) as conn:
        return [r[0] for r in conn.execute("SELECT tag_text FROM tag_exceptions").fetchall()]

def add_tag_exception(text: str):
    with closing(get_conn()) as conn, conn:
        conn.execute("INSERT OR IGNORE INTO tag_exceptions (tag_text) VALUES (?)", (text.strip().lower(),))

def add_tag_special(text: str) -> int:
    # Resolve-or-create a tag by its (unique) text; returns tag_id.
    with closing(get_conn()) as conn, conn:
        conn.execute("INSERT OR IGNORE INTO tags (tag_text) VALUES (?)", (text,))
        return conn.execute("SELECT tag_id FROM tags WHERE tag_text=?", (text,)).fetchone()[0]

def bind_tags_bulk(youtube_video_id: str, tag_ids: Iterable[int]):
    # Replace a video's tag bindings with the given set.
    with closing(get_conn()) as conn, conn:
        conn.execute("DELETE FROM video_tags WHERE youtube_video_id=?", (youtube_video_id,))
        conn.executemany(
            "INSERT OR IGNORE INTO video_tags (youtube_video_id, tag_id) VALUES (?,?)",
            [(youtube_video_id, t) for t in tag_ids]
        )

def get_video_tags(youtube_video_id: str) -> List[str]:
    with closing(get_conn()) as conn:
        rows = conn.execute("""
        SELECT t.tag_text FROM video_tags vt JOIN tags t ON t.tag_id = vt.tag_id
        WHERE vt.youtube_video_id=? ORDER BY t.tag_id
        """, (youtube_video_id,)).fetchall()
    return [r[0] for r in rows]

"""
refresh_channels.py
Re-reconcile every active channel against YouTube, one channel at a time.
"""

import argparse, time
from tracker import reconcile, store
from tracker.errors import NoKeyAvailable, TrackerError
from tracker.utils import setup_logging

SLEEP = 0.5     # polite pause between channels

def main(argv=None):
    ap = argparse.ArgumentParser(description="Refresh all active channels from YouTube.")
    ap.add_argument("--worker", action="store_true", help="use the worker key pool")
    args = ap.parse_args(argv)

    setup_logging()
    store.init_db()

    chans = store.list_active_channels()
    if not chans:
        print("No active channels.")
        return 0

    print(f"Refreshing {len(chans)} channels...")
    failed = 0
    for ch in chans:
        label = ch["channel_title"] or ch["youtube_channel_id"]
        try:
            res = reconcile.reload_channel_data(ch["channel_id"], ch["youtube_channel_id"], args.worker)
        except NoKeyAvailable as e:
            print(f"[stop] {e.message}")
            return 2
        except TrackerError as e:
            failed += 1
            print(f"[fail] {label}: {e.message} ({e.details})")
            continue
        v = res["videos"]
        print(f"[ok] {label}: +{v['new']} ~{v['updated']} -{v['deleted']}")
        time.sleep(SLEEP)
    print(f"Done. {len(chans) - failed} ok, {failed} failed.")
    return 1 if failed else 0

if __name__ == "__main__":
    raise SystemExit(main())

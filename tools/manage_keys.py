"""
manage_keys.py
Add, list and reset YouTube API keys in the tracker database.
"""

import argparse
from tracker import store
from tracker.channels import check_key
from tracker.utils import mask_key

def main(argv=None):
    ap = argparse.ArgumentParser(description="Manage the YouTube API key pool.")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_add = sub.add_parser("add", help="register a key")
    p_add.add_argument("code")
    p_add.add_argument("--worker", action="store_true")

    p_reset = sub.add_parser("reset", help="clear the expired flag")
    pool = p_reset.add_mutually_exclusive_group()
    pool.add_argument("--worker", action="store_true", help="only the worker pool")
    pool.add_argument("--default", action="store_true", help="only the default pool")

    sub.add_parser("list", help="show keys and their state")

    args = ap.parse_args(argv)
    store.init_db()

    if args.cmd == "add":
        if not check_key(args.code):
            print("Key is not correct")
            return 1
        store.add_key(args.code, is_worker=args.worker)
        print(f"Added {mask_key(args.code)} ({'worker' if args.worker else 'default'} pool)")
    elif args.cmd == "reset":
        is_worker = True if args.worker else (False if args.default else None)
        print(f"Reset {store.reset_keys(is_worker)} keys")
    else:
        for k in store.list_keys():
            state = "expired" if k["expired"] else "ok"
            print(f"{mask_key(k['key_code'])}\t{'worker' if k['is_worker'] else 'default'}\t{state}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())

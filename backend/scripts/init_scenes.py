#!/usr/bin/env python3
"""Create the default scenes (weibo, news) and, with --webhook-url, two sample subscriptions.
Run from backend: python scripts/init_scenes.py [--webhook-url https://open.feishu.cn/...]
Restart the scheduler afterwards so new cron subscriptions are picked up.
"""
import argparse
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from scenecast.db.session import SessionLocal
from scenecast.services.seed_service import seed_defaults


def main():
    parser = argparse.ArgumentParser(description="Seed default notification scenes")
    parser.add_argument("--webhook-url", help="Create sample subscriptions pushing to this URL")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        created = seed_defaults(db, sample_webhook_url=args.webhook_url)
        print("Scenes created:", ", ".join(created["scenes"]) or "(none, all exist)")
        if args.webhook_url:
            print("Subscriptions created:", ", ".join(created["subscriptions"]) or "(none, all exist)")
        print()
        print("Restart the scheduler so new cron subscriptions are registered.")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()

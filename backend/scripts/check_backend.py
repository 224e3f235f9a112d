#!/usr/bin/env python3
"""
Quick checks so the scheduler can start. Run from backend/:
  python scripts/check_backend.py
"""
import asyncio
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        print("WARN .env missing; using defaults (sqlite, in-memory cache)")
    else:
        print("OK  .env exists")

    # 2) DB connection and tables
    try:
        from sqlalchemy import inspect, text

        from scenecast.db.session import engine
        from scenecast.db.tables import ALL_TABLE_NAMES

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("OK  Database connection (DATABASE_URL)")
        missing = set(ALL_TABLE_NAMES) - set(inspect(engine).get_table_names())
        if missing:
            errors.append(f"Tables missing: {sorted(missing)}. Run: alembic upgrade head")
            print("FAIL Tables missing:", sorted(missing))
        else:
            print("OK  Tables exist")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    # 3) Cache store
    try:
        from scenecast.config import settings
        from scenecast.services.cache import RedisCacheStore

        if settings.redis_url:
            async def _ping():
                store = RedisCacheStore(settings.redis_url)
                try:
                    return await store.ping()
                finally:
                    await store.close()

            asyncio.run(_ping())
            print("OK  Redis reachable (REDIS_URL)")
        else:
            print("OK  Cache: in-memory store (REDIS_URL not set)")
    except Exception as e:
        errors.append(f"Cache store: {e}")
        print("FAIL Cache store:", e)

    # 4) Scenes point at registered handlers
    try:
        from scenecast.db.session import SessionLocal
        from scenecast.models.scene import Scene
        from scenecast.services.data_sources import DataSourceRegistry, register_builtin_sources

        registry = DataSourceRegistry()
        register_builtin_sources(registry)
        db = SessionLocal()
        try:
            for scene in db.query(Scene).all():
                if scene.handler not in registry:
                    errors.append(f'Scene "{scene.name}" uses unregistered handler "{scene.handler}"')
                    print(f"FAIL Scene {scene.name}: handler {scene.handler} not registered")
        finally:
            db.close()
    except Exception as e:
        errors.append(f"Scenes: {e}")
        print("FAIL Scenes:", e)

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: scenecast  (or python -m scenecast.main)")
    return 0

if __name__ == "__main__":
    sys.exit(main())

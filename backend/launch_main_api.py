#!/usr/bin/env python3
"""Launch the catalog admin API server.

    python launch_main_api.py                 # dev server with reload on :8000
    python launch_main_api.py --port 9000 --no-reload --init-db
"""
import argparse
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(BACKEND_ROOT / "src"))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="HealthScan catalog admin API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", dest="reload", action="store_false")
    parser.add_argument("--init-db", action="store_true", help="create the kv_store table before serving")
    return parser.parse_args(argv)


if __name__ == "__main__":
    import uvicorn

    args = parse_args()
    if args.init_db:
        from healthscan_catalog.core.database import init_db

        init_db()
        print("kv_store table ready")

    print("=" * 60)
    print(f"Catalog admin API on http://{args.host}:{args.port}  (docs at /docs)")
    print("Press Ctrl+C to stop")
    print("=" * 60)

    uvicorn.run(
        "healthscan_catalog.main:app",
        app_dir=str(BACKEND_ROOT / "src"),
        host=args.host,
        port=args.port,
        reload=args.reload,
    )

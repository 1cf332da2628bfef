from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

BASE_DIR = Path(__file__).resolve().parent.parent

sys.path.insert(0, str(BASE_DIR))

from cms.config import load_settings
from cms.main import create_app

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4322


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the local blog CMS API.")
    parser.add_argument("--project-root", type=Path, default=None, help="Blog project root (default: $BLOGCMS_PROJECT_ROOT or cwd).")
    parser.add_argument("--host", type=str, default=DEFAULT_HOST, help="Bind address, keep it on localhost.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--log-level", type=str, default="info")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = load_settings(args.project_root)
    app = create_app(settings)
    print(f"CMS running at http://{args.host}:{args.port} (project: {settings.project_root})")
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()

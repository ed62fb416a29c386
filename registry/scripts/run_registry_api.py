"""Run the crates registry API under uvicorn."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from crates_api.config.settings import get_api_settings
from crates_api.storage import get_storage_root

LOGGER = logging.getLogger("crates_api.launcher")


def main() -> None:
    settings = get_api_settings()
    parser = argparse.ArgumentParser(description="Serve the crates registry API")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", default=settings.reload)
    parser.add_argument("--log-level", choices=["critical", "error", "warning", "info", "debug"], default=None)
    args = parser.parse_args()

    log_level = args.log_level or ("debug" if settings.log_level == "trace" else settings.log_level)
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    LOGGER.info("Serving crates from %s on %s:%s", get_storage_root(), args.host, args.port)

    uvicorn.run(
        "crates_api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=log_level,
        log_config=None,
    )


if __name__ == "__main__":
    main()

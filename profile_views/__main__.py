from __future__ import annotations

import argparse

import uvicorn

from profile_views.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Profile views counter badge server")
    parser.add_argument("--host", default=None, help="Bind address (default: 127.0.0.1 locally, :: in production)")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    args = parser.parse_args()

    uvicorn.run(
        "profile_views.main:app",
        host=args.host or settings.bind_host,
        port=args.port,
        reload=bool(args.reload),
        log_config=None,
    )


if __name__ == "__main__":
    main()

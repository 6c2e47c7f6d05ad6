"""Run the webcam face service."""
import argparse

import uvicorn

from facecam.core.config import settings


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Serve the webcam face API")
    parser.add_argument("--host", default=settings.HOST, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    uvicorn.run(
        "facecam.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()

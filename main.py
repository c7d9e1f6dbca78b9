"""Dimensional Chat: dev launcher. Starts the API server with uvicorn."""

import argparse
import logging
import os

import uvicorn

from dimensional_chat.config import load_settings


def main():
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Dimensional Chat dev launcher")
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument("--echo", action="store_true",
                        help="Echo user messages instead of calling the completion API")
    parser.add_argument("--log-level", default="info", help="Logging level (default: info)")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # The app reads settings from the environment at import
    if args.echo:
        os.environ["COMPLETION_BACKEND"] = "echo"

    print(f"Starting Dimensional Chat on http://localhost:{args.port} ...")
    uvicorn.run(
        "dimensional_chat.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()

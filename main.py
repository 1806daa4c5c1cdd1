"""Solo TRPG — dev launcher. Starts the API server with uvicorn."""

import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13013"))


def main():
    parser = argparse.ArgumentParser(description="Solo TRPG dev launcher")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--config", type=Path, default=None,
                        help="JSON config file (default: $SOLO_TRPG_CONFIG)")
    parser.add_argument("--narrator", choices=("scripted", "llm"), default=None,
                        help="Override the narrator selection")
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload on source changes")
    parser.add_argument("--log-level", default="info",
                        choices=("debug", "info", "warning", "error"))
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # The app factory reads these, including in reloader subprocesses.
    if args.config:
        os.environ["SOLO_TRPG_CONFIG"] = str(args.config.resolve())
    if args.narrator:
        os.environ["NARRATOR"] = args.narrator

    print(f"Starting Solo TRPG on http://localhost:{args.port} ...")
    uvicorn.run(
        "solo_trpg.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()

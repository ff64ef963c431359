import argparse
import sys

import uvicorn

from attendance_api.core.config import get_settings
from attendance_api.core.exceptions import AttendanceError
from attendance_api.core.logger import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Face punch attendance backend")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0", help="Host interface")
    serve.add_argument("--port", type=int, default=8000, help="Port")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    subparsers.add_parser("init-db", help="Create tables and the bootstrap superadmin, then exit")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    settings = get_settings()
    logger = configure_logging(settings.log_level, settings.log_dir)

    try:
        if args.command == "serve":
            uvicorn.run("attendance_api.main:app", host=args.host, port=args.port, reload=args.reload)
            return 0

        if args.command == "init-db":
            from attendance_api.main import bootstrap_defaults

            bootstrap_defaults()
            logger.info("Database initialised.")
            return 0
    except AttendanceError as exc:
        logger.error("Command failed: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())

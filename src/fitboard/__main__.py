"""
Main entrypoint.

Usage:
    python -m fitboard                       # serve the API (scheduler runs inside it)
    python -m fitboard backfill [--max-count N] [--force]
"""
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _run_server() -> None:
    import uvicorn

    logger.info("Starting API on 0.0.0.0:8000")
    uvicorn.run("fitboard.api.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    # Dispatch on first argument: `python -m fitboard backfill` or just `python -m fitboard`
    if len(sys.argv) > 1 and sys.argv[1] == "backfill":
        from fitboard.scripts.backfill import main as backfill_main
        sys.exit(backfill_main(sys.argv[2:]))
    else:
        _run_server()

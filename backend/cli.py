"""
backend/cli.py
==============

Command-line entry points for HealthAI Pro+.

Usage:
    # Start the HTTP server
    healthai-server --port 8080

    # Ask a single question without starting the server
    healthai-ask "What are the symptoms of dengue?"
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import HOST, LOG_LEVEL, PORT, WORKER_THREADS


def _configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def serve(argv=None):
    """Run the FastAPI app under uvicorn."""
    parser = argparse.ArgumentParser(description="Run the HealthAI Pro+ HTTP server")
    parser.add_argument("--host", default=HOST, help=f"Interface to bind (default: {HOST})")
    parser.add_argument("--port", type=int, default=PORT, help=f"Port to listen on (default: {PORT})")
    parser.add_argument(
        "--workers",
        type=int,
        default=WORKER_THREADS,
        help=f"Request handler threads (default: {WORKER_THREADS})",
    )
    args = parser.parse_args(argv)

    _configure_logging()

    import uvicorn
    from backend.main import create_app

    app = create_app(worker_threads=args.workers)
    logging.getLogger(__name__).info("Starting HealthAI Pro+ on http://%s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=LOG_LEVEL.lower())


def ask(argv=None):
    """Answer one question and print the result as JSON."""
    parser = argparse.ArgumentParser(description="Ask HealthAI Pro+ a single question")
    parser.add_argument("message", nargs="+", help="The question to ask")
    args = parser.parse_args(argv)

    message = " ".join(args.message).strip()
    if not message:
        parser.error("message must not be blank")

    _configure_logging()

    from core.service import build_default_pipeline

    try:
        pipeline = build_default_pipeline()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    result = pipeline.answer(message)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    serve()

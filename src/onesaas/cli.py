"""Command line entry point.

``onesaas setup`` runs the interactive provisioning session;
``onesaas serve`` runs the chat web app with uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path

from .console import RichConsole
from .observability import configure_logging
from .provisioning import ExitCode
from .session import SetupSession
from .settings import SettingsError, SetupSettings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onesaas",
        description="Provision GitHub, Supabase and Vercel for a new SaaS project.",
    )
    sub = parser.add_subparsers(dest="command")

    setup = sub.add_parser("setup", help="Run the interactive setup (default)")
    setup.add_argument("--output-dir", type=Path, default=None)
    setup.add_argument("--log-level", default=None)
    setup.add_argument("--log-format", choices=("console", "json"), default=None)
    setup.add_argument("--skip-tooling", action="store_true", default=None)

    serve = sub.add_parser("serve", help="Run the chat web app")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    serve.add_argument("--log-level", default="INFO")
    return parser


def load_settings(args: argparse.Namespace, env: dict[str, str] | None = None) -> SetupSettings:
    """Environment settings with command line flags applied on top.

    Raises:
        SettingsError: If the result does not validate.
    """
    settings = SetupSettings.from_env(env)
    overrides = {
        "output_dir": getattr(args, "output_dir", None),
        "log_level": getattr(args, "log_level", None),
        "log_format": getattr(args, "log_format", None),
        "skip_tooling": getattr(args, "skip_tooling", None),
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})
    errors = settings.validate()
    if errors:
        raise SettingsError(errors)
    return settings


async def _interruptible(coro):
    """Await ``coro`` with Ctrl-C raising ``KeyboardInterrupt`` at once.

    ``asyncio.run`` turns the first SIGINT into a task cancellation, which a
    blocking prompt never sees.
    """
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, signal.default_int_handler)
    return await coro


def run_setup(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args)
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return ExitCode.FAILURE

    configure_logging(level=settings.log_level, json_output=settings.log_format == "json")
    session = SetupSession(settings, RichConsole())
    return asyncio.run(_interruptible(session.run()))


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .webapp import create_app

    configure_logging(level=args.log_level, json_output=False)
    app = create_app()
    uvicorn.run(app, host=args.host, port=args.port)
    return ExitCode.OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "serve":
            return int(run_serve(args))
        return int(run_setup(args))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return ExitCode.INTERRUPTED
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return ExitCode.FAILURE
    except Exception:
        logger.exception("Unexpected error")
        return ExitCode.FAILURE


if __name__ == "__main__":
    raise SystemExit(main())

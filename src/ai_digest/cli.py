"""CLI for AI Digest: run the server, fetch a digest, or listen to one."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn
from pydantic import BaseModel, ValidationError, field_validator

from ai_digest.api import create_app
from ai_digest.client import ConsoleSpeechEngine, DigestClient, PlaybackController
from ai_digest.config import DigestConfig, create_from_config, get_default_config_path, load_config
from ai_digest.dates import TODAY
from ai_digest.errors import DigestError
from ai_digest.playback import (
    Answering,
    ChangeDate,
    Done,
    Error,
    JumpTo,
    Next,
    Paused,
    PlaybackEvent,
    PlaybackState,
    Playing,
    Previous,
    QuestionAsked,
    Retry,
    TogglePlay,
)

logger = logging.getLogger(__name__)

LISTEN_HELP = """\
Commands: <enter> play/pause, n next, b back, j N jump to story N,
d DATE change day, r retry, ? QUESTION ask about the current story, q quit"""


class CLIArgs(BaseModel):
    """Validated CLI arguments shared by ``serve`` and ``fetch``."""

    config: Path
    log: bool = False
    log_dir: str = "logs"

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v


def _load(args: CLIArgs) -> DigestConfig:
    config = load_config(args.config)
    if args.log or args.log_dir != "logs":
        logging_config = config.logging.model_copy(
            update={"enabled": args.log or config.logging.enabled, "log_dir": args.log_dir}
        )
        config = config.model_copy(update={"logging": logging_config})
    return config


def serve(args: CLIArgs, host: str | None, port: int | None) -> None:
    """Run the HTTP server."""
    config = _load(args)
    logging.getLogger().setLevel(config.logging.level)
    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )


async def fetch(args: CLIArgs, date_key: str) -> None:
    """Resolve one digest locally, acquiring it if needed, and print it."""
    config = _load(args)
    components = create_from_config(config)
    try:
        digest, cache_hit = await components.service.get_digest(date_key)
    finally:
        await components.store.close()

    source = "cached" if cache_hit else "fresh"
    print(f"\n{digest.date} ({source}), {len(digest.stories)} stories:\n")
    for i, story in enumerate(digest.stories, 1):
        logger.info(f"{i}. [{story.tag}] {story.headline}")
        logger.info(f"   {story.summary}")
        if story.url:
            logger.info(f"   URL: {story.url}")

    if components.run_logger and components.run_logger.last_log_path:
        logger.info(f"\nRun log written to: {components.run_logger.last_log_path}")


def describe(state: PlaybackState) -> str:
    """One status line for the listening client."""
    if isinstance(state, Playing):
        return f"Playing story {state.index + 1}/{len(state.stories)}"
    if isinstance(state, Paused):
        return f"Paused on story {state.index + 1}/{len(state.stories)}"
    if isinstance(state, Answering):
        return "Answering" if state.utterance is None else "Reading answer"
    if isinstance(state, Done):
        return "Done"
    if isinstance(state, Error):
        return f"Error: {state.message} (r to retry)"
    return f"Loading {state.date}"


def parse_command(line: str) -> PlaybackEvent | None:
    """Map a typed command to a playback event; None if it is not one."""
    text = line.strip()
    if not text:
        return TogglePlay()
    if text == "n":
        return Next()
    if text == "b":
        return Previous()
    if text == "r":
        return Retry()
    if text.startswith("?"):
        return QuestionAsked(text[1:])
    if text.startswith("d "):
        return ChangeDate(text[2:].strip() or TODAY)
    if text.startswith("j "):
        try:
            return JumpTo(int(text[2:]) - 1)
        except ValueError:
            return None
    return None


async def listen(url: str, date_key: str, words_per_second: float) -> None:
    """Interactive console client against a running server."""
    client = DigestClient(url)
    last_status: list[str] = []

    def on_state(state: PlaybackState) -> None:
        status = describe(state)
        if not last_status or last_status[-1] != status:
            last_status.append(status)
            logger.info(f"-- {status}")

    controller = PlaybackController(
        client, ConsoleSpeechEngine(words_per_second), on_state=on_state
    )
    logger.info(LISTEN_HELP)
    controller.start(date_key)
    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            if line.strip() in ("q", "quit"):
                break
            event = parse_command(line)
            if event is None:
                logger.info(LISTEN_HELP)
                continue
            controller.dispatch(event)
    finally:
        await controller.close()
        await client.close()


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Daily AI news digest, read aloud.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_config_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--config",
            "-c",
            type=Path,
            default=None,
            help="Path to YAML config file (default: configs/default.yaml)",
        )
        sub.add_argument(
            "--log",
            action="store_true",
            default=False,
            help="Enable per-acquisition JSON logging",
        )
        sub.add_argument(
            "--log-dir",
            type=str,
            default="logs",
            help="Directory for log files (default: logs/)",
        )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    add_config_args(serve_parser)
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    fetch_parser = subparsers.add_parser("fetch", help="Print a digest without the server")
    add_config_args(fetch_parser)
    fetch_parser.add_argument(
        "date",
        nargs="?",
        default=TODAY,
        help='"today" or a date like "February 5, 2026"',
    )

    listen_parser = subparsers.add_parser("listen", help="Listen to a digest in the console")
    listen_parser.add_argument("--url", default="http://127.0.0.1:8000")
    listen_parser.add_argument("--date", default=TODAY)
    listen_parser.add_argument(
        "--words-per-second",
        type=float,
        default=3.0,
        help="Simulated speaking rate (default: 3.0)",
    )

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()

    if ns.command == "listen":
        try:
            asyncio.run(listen(ns.url, ns.date, ns.words_per_second))
        except KeyboardInterrupt:
            sys.exit(130)
        return

    config_path: Path = ns.config if ns.config else get_default_config_path()
    try:
        args = CLIArgs(config=config_path, log=ns.log, log_dir=ns.log_dir)
    except ValidationError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        if ns.command == "serve":
            serve(args, ns.host, ns.port)
        else:
            asyncio.run(fetch(args, ns.date))
    except DigestError as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

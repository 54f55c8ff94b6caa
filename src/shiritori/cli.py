from __future__ import annotations

import argparse
import json
import os
import sys
from importlib import metadata
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console

from .config import ConfigError, ShiritoriConfig, load_config
from .dictionaries import DictionaryLoadError
from .judge import Verdict, build_judge
from .logging_utils import build_uvicorn_log_config, set_debug_logging
from .nlp import NLPBackendUnavailableError
from .numerals import get_number_reading
from .reading import build_reading_extractor
from .state import ChainStore, StorageError, check_event_id
from .tokens import serialize_tokens
from .tools import (
    DEFAULT_UNIDIC_URL,
    UNIDIC_DIR_ENV,
    UNIDIC_VERSION,
    UniDicInstallError,
    ensure_unidic_installed,
    resolve_managed_unidic,
)
from .web import create_app

DIST_NAME = "shiritori-sifter"

EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_STORAGE_FAULT = 2

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version(DIST_NAME)
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"shiritori {__version__}",
    )


def _add_debug_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print lock and verdict diagnostics.",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shiritori",
        description=(
            "Shiritori chain moderation. Subcommands: reading, number, judge, next, serve, tools."
        ),
    )
    _add_version_flag(ap)
    return ap


def build_reading_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shiritori reading",
        description="Show the head and last kana of a post.",
    )
    _add_version_flag(ap)
    _add_debug_flag(ap)
    ap.add_argument(
        "--tokens",
        action="store_true",
        help="Also print the normalized text and the tokens it was split into.",
    )
    ap.add_argument("text", nargs="+", help="Post text (joined with spaces).")
    return ap


def build_number_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shiritori number",
        description="Read an Arabic numeral aloud in katakana.",
    )
    _add_version_flag(ap)
    ap.add_argument("numeral", help="Numeral such as 1234, -0.5 or 1,000.")
    return ap


def build_judge_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shiritori judge",
        description="Judge a post against the stored chain and advance it when accepted.",
    )
    _add_version_flag(ap)
    _add_debug_flag(ap)
    ap.add_argument(
        "--event-id",
        required=True,
        type=check_event_id,
        help="Identifier of the source event (no line breaks).",
    )
    ap.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the chain lock (default: SHIRITORI_LOCK_TIMEOUT or forever).",
    )
    ap.add_argument("text", nargs="+", help="Post text (joined with spaces).")
    return ap


def build_next_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shiritori next",
        description="Show the kana the next post has to start with.",
    )
    _add_version_flag(ap)
    return ap


def build_serve_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="shiritori serve",
        description="Serve the read-only reading query over HTTP.",
    )
    _add_version_flag(ap)
    _add_debug_flag(ap)
    ap.add_argument("--host", default="127.0.0.1", help="Bind address (default: %(default)s).")
    ap.add_argument("--port", type=int, default=8080, help="Port (default: %(default)s).")
    return ap


def build_tools_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="shiritori tools", description="shiritori helper utilities")
    _add_version_flag(ap)
    subparsers = ap.add_subparsers(dest="tool_cmd")

    install = subparsers.add_parser(
        "install-unidic",
        help=f"Download and register UniDic {UNIDIC_VERSION} inside the current virtualenv.",
    )
    install.add_argument(
        "--zip",
        help=f"Path to a previously downloaded unidic-cwj-{UNIDIC_VERSION} zip archive.",
    )
    install.add_argument(
        "--url",
        default=DEFAULT_UNIDIC_URL,
        help="Download URL for the UniDic archive (default: %(default)s).",
    )
    install.add_argument(
        "--force",
        action="store_true",
        help="Reinstall even if the requested version already exists.",
    )

    subparsers.add_parser(
        "unidic-status",
        help="Show the currently detected UniDic dictionary path.",
    )
    return ap


def _load_config() -> ShiritoriConfig:
    try:
        return load_config()
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc


def _extractor_for(config: ShiritoriConfig):
    try:
        return build_reading_extractor(config)
    except (DictionaryLoadError, NLPBackendUnavailableError) as exc:
        raise SystemExit(str(exc)) from exc


def _run_reading(args: argparse.Namespace) -> int:
    set_debug_logging(args.debug)
    text = " ".join(args.text)
    extractor = _extractor_for(_load_config())
    tokens = extractor.tokenize(text)
    if args.tokens:
        console.print(f"normalized: {extractor.normalize(text)}", markup=False, highlight=False)
        console.print_json(json.dumps(serialize_tokens(tokens), ensure_ascii=False))
    result = extractor.head_and_last_of_tokens(tokens)
    if result is None:
        console.print("unreadable")
        return 1
    console.print(f"head: {result.head}  last: {result.last}")
    return 0


def _run_number(args: argparse.Namespace) -> int:
    console.print(get_number_reading(args.numeral))
    return 0


def _run_judge(args: argparse.Namespace) -> int:
    set_debug_logging(args.debug)
    config = _load_config()
    timeout = args.timeout if args.timeout is not None else config.lock_timeout
    try:
        judge = build_judge(config)
    except (DictionaryLoadError, NLPBackendUnavailableError) as exc:
        raise SystemExit(str(exc)) from exc
    text = " ".join(args.text)
    try:
        judgement = judge.judge(text, args.event_id, timeout=timeout)
    except StorageError as exc:
        err_console.print(f"[red]Storage error:[/] {exc}")
        return EXIT_STORAGE_FAULT

    if judgement.verdict is Verdict.ACCEPTED:
        console.print(f"[green]accepted[/] (head: {judgement.head}, last: {judgement.last})")
        return EXIT_ACCEPTED
    if judgement.verdict is Verdict.NOT_CONNECTED:
        console.print(
            f"[yellow]not connected[/]: {judgement.head} does not follow {judgement.previous_last}"
        )
    elif judgement.verdict is Verdict.DUPLICATE:
        console.print(f"[yellow]duplicate[/]: event {args.event_id} was already judged")
    else:
        console.print("[yellow]unreadable[/]")
    return EXIT_REJECTED


def _run_next(args: argparse.Namespace) -> int:
    config = _load_config()
    store = ChainStore(config.state_path)
    try:
        state = store.peek(config.lock_timeout)
    except StorageError as exc:
        err_console.print(f"[red]Storage error:[/] {exc}")
        return EXIT_STORAGE_FAULT
    if state is None:
        console.print("No post has been accepted yet; any word may start the chain.")
    else:
        console.print(state.last_kana)
    return 0


def _run_serve(args: argparse.Namespace) -> None:
    set_debug_logging(args.debug)
    config = _load_config()
    try:
        app = create_app(config)
    except (DictionaryLoadError, NLPBackendUnavailableError) as exc:
        raise SystemExit(str(exc)) from exc
    console.print(f"Chain state: {config.state_path}")
    console.print(f"Query URL: http://{args.host}:{args.port}/?c=")
    console.print("Press Ctrl+C to stop.\n")
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="debug" if args.debug else "info",
        log_config=build_uvicorn_log_config(debug=args.debug),
    )


def _run_tools(args: argparse.Namespace) -> int:
    if not args.tool_cmd:
        raise SystemExit("A tools subcommand is required. Use --help for options.")

    if args.tool_cmd == "install-unidic":
        try:
            status = ensure_unidic_installed(url=args.url, zip_path=args.zip, force=args.force)
        except UniDicInstallError as exc:
            raise SystemExit(str(exc)) from exc
        console.print(f"UniDic {status.version} installed at {status.path}")
        console.print(
            f"Set {UNIDIC_DIR_ENV} to override or rerun 'shiritori tools install-unidic' to reinstall."
        )
        return 0

    if args.tool_cmd == "unidic-status":
        status = resolve_managed_unidic()
        if status.path and (status.path / "dicrc").exists():
            console.print(f"Managed UniDic path: {status.path}")
            console.print(f"Version: {status.version or 'unknown'}")
        else:
            console.print("No managed UniDic installation detected. Use 'shiritori tools install-unidic'.")
        env_dir = os.environ.get(UNIDIC_DIR_ENV)
        if env_dir:
            console.print(f"{UNIDIC_DIR_ENV} is set to: {env_dir}")
        return 0

    raise SystemExit(f"Unknown tools subcommand: {args.tool_cmd}")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "reading":
        return _run_reading(build_reading_parser().parse_args(argv[1:]))
    if argv and argv[0] == "number":
        return _run_number(build_number_parser().parse_args(argv[1:]))
    if argv and argv[0] == "judge":
        return _run_judge(build_judge_parser().parse_args(argv[1:]))
    if argv and argv[0] == "next":
        return _run_next(build_next_parser().parse_args(argv[1:]))
    if argv and argv[0] == "serve":
        _run_serve(build_serve_parser().parse_args(argv[1:]))
        return 0
    if argv and argv[0] == "tools":
        return _run_tools(build_tools_parser().parse_args(argv[1:]))

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    parser.parse_args(argv)
    parser.error(f"unknown command: {argv[0]}")
    return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

"""Entry point for the cliphist-query CLI."""

import argparse
import sys
from importlib.metadata import version
from pathlib import Path

from cliphist_query.config import default_config_dir, load_config
from cliphist_query.errors import CliphistError, report_failure, setup_logging
from cliphist_query.plugin import load_plugin


def _write_payload(payload: bytes) -> None:
    sys.stdout.buffer.write(payload)
    sys.stdout.buffer.flush()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cliphist-query",
        description="Search clipboard history and print the chosen entry",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"cliphist-query {version('cliphist-query')}",
    )
    parser.add_argument(
        "--config-dir",
        "-c",
        type=Path,
        default=None,
        help="Directory containing cliphist.yaml (default: ~/.config/cliphist-query)",
    )
    sub = parser.add_subparsers(dest="command")

    query_parser = sub.add_parser("query", help="Print ranked matches as id<TAB>title")
    query_parser.add_argument("text", nargs="?", default="", help="Query string")
    query_parser.add_argument(
        "--resolve",
        action="store_true",
        help="Print the full payload of the best match instead of the list",
    )

    pick_parser = sub.add_parser("pick", help="Choose an entry interactively (default)")
    pick_parser.add_argument("text", nargs="?", default="", help="Initial query")

    args = parser.parse_args(argv)

    config_dir = args.config_dir or default_config_dir()
    config = load_config(config_dir)
    setup_logging(config)

    try:
        plugin = load_plugin(config_dir, config=config)
    except CliphistError as e:
        print(report_failure(e, "Failed to load clipboard history"), file=sys.stderr)
        return 1

    if args.command == "query":
        matches = plugin.get_matches(args.text)
        if args.resolve:
            if not matches:
                return 1
            try:
                _write_payload(plugin.handler(matches[0]))
            except CliphistError as e:
                print(report_failure(e, "Failed to resolve entry"), file=sys.stderr)
                return 1
            return 0
        for match in matches:
            print(f"{match.id}\t{match.title}")
        return 0

    from cliphist_query.app import PickerApp

    app = PickerApp(plugin, query=getattr(args, "text", ""))
    payload = app.run()
    if payload is None:
        return 1
    _write_payload(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Command line front end.

    gamedex scan            load the index, rescanning only if games changed
    gamedex rescan          force a full rescan
    gamedex resolve         list games with several candidate executables
    gamedex choose DIR EXE  remember the executable to use for a game folder
    gamedex info NAME       cached (or freshly fetched) description and genres
    gamedex art NAME        fetch a cover into the image cache
    gamedex purge NAME      forget a game's cached metadata and cover
    gamedex launch NAME     start a game
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

from gamedex.core import GameDexCore
from gamedex.stores.base import GameEntry, LauncherKind
from gamedex.utils.log_setup import setup_logging
from gamedex.utils.paths import get_data_dir

logger = logging.getLogger(__name__)


def _print_json(data: Any):
    print(json.dumps(data, indent=2, default=str))


def _pick_entry(core: GameDexCore, name: str, launcher: Optional[str]) -> Optional[GameEntry]:
    matches = core.find_by_name(name)
    if launcher:
        kind = LauncherKind.parse(launcher)
        matches = [e for e in matches if e.launcher == kind]
    if not matches:
        print(f"No game named '{name}' in the index", file=sys.stderr)
        return None
    if len(matches) > 1:
        print(f"'{name}' exists for several launchers, pass --launcher", file=sys.stderr)
        return None
    return matches[0]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gamedex", description="Index locally installed PC games")
    parser.add_argument("--data-dir", default=None,
                        help=f"Data directory (default: {get_data_dir()})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Load the index, rescanning if games changed")
    scan.add_argument("--no-art", action="store_true", help="Skip cover prefetch")
    rescan = sub.add_parser("rescan", help="Force a full rescan")
    rescan.add_argument("--no-art", action="store_true", help="Skip cover prefetch")

    sub.add_parser("resolve", help="List games needing an executable choice")

    choose = sub.add_parser("choose", help="Remember the executable for a game folder")
    choose.add_argument("dir_path")
    choose.add_argument("exe_path")

    for command, help_text in (
        ("info", "Show description and genres"),
        ("art", "Fetch a cover into the image cache"),
        ("purge", "Forget cached metadata and cover"),
        ("launch", "Start a game"),
    ):
        p = sub.add_parser(command, help=help_text)
        p.add_argument("name")
        p.add_argument("--launcher", default=None,
                       help="Steam, EA, BattleNet, Ubisoft or Custom")

    return parser


async def run(args: argparse.Namespace) -> int:
    core = GameDexCore(args.data_dir).init()
    try:
        if args.command in ("scan", "rescan"):
            if core.needs_setup():
                print("No launcher libraries configured. Edit config.json in "
                      f"{core.data_dir} and run again.", file=sys.stderr)
            result = await core.refresh_library(
                force_rescan=args.command == "rescan",
                fetch_images=not args.no_art,
            )
            _print_json(result)
            return 0 if result['success'] else 1

        if args.command == "resolve":
            _, ambiguous = await core.resolve_index()
            _print_json(ambiguous)
            return 0

        if args.command == "choose":
            return 0 if core.choose(args.dir_path, args.exe_path).ok else 1

        entry = _pick_entry(core, args.name, args.launcher)
        if entry is None:
            return 1

        if args.command == "info":
            record = await core.fetch_metadata(entry)
            _print_json({'name': entry.name, **(record.to_dict() if record else {'description': None, 'genres': []})})
            return 0

        if args.command == "art":
            data = await core.get_image(entry)
            if data is None:
                print(f"No cover found for '{entry.name}'", file=sys.stderr)
                return 1
            print(f"Cover cached ({len(data)} bytes)")
            return 0

        if args.command == "purge":
            removed = core.remove_game_caches(entry.launcher, entry.name)
            print("Removed" if removed else "Nothing cached")
            return 0

        if args.command == "launch":
            return 0 if core.launch(entry).ok else 1

        return 2
    finally:
        await core.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    data_dir = get_data_dir(args.data_dir)
    setup_logging(data_dir, logging.DEBUG if args.verbose else logging.INFO)
    args.data_dir = data_dir
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())

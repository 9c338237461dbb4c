"""Unified CLI for codefactory.

Usage:
    codefactory generators list
    codefactory generators show <name>
    codefactory create <generator> [<path>] [--param k=v ...] [--params <file|mapping>] [--id X] [--dry-run]
    codefactory sync <file> [--dry-run]
    codefactory sync-all [<dir>] [--dry-run]
    codefactory inspect <file> [--json]
    codefactory manifest add <id> <generator> <output-path> [--param k=v ...] [--depends-on X ...]
    codefactory manifest remove <id>
    codefactory manifest list
    codefactory manifest order
    codefactory manifest validate
    codefactory manifest build [--dry-run]
"""

import argparse
import logging
import sys

from codefactory_engine.cli.generators import cmd_generators_list, cmd_generators_show
from codefactory_engine.cli.manifest import (
    cmd_manifest_add,
    cmd_manifest_build,
    cmd_manifest_list,
    cmd_manifest_order,
    cmd_manifest_remove,
    cmd_manifest_validate,
)
from codefactory_engine.cli.produce import cmd_create, cmd_inspect, cmd_sync, cmd_sync_all
from codefactory_engine.exceptions import CodefactoryError


def _add_param_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--param", action="append", default=[], metavar="KEY=VALUE",
        help="Generator parameter (repeatable)",
    )
    parser.add_argument(
        "--params", default=None,
        help="YAML/JSON file or inline mapping of parameters",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codefactory",
        description="Template-driven code generation with round-trip sync",
    )
    parser.add_argument(
        "--project", default=None,
        help="Project root (default: $CODEFACTORY_PROJECT_DIR or cwd)",
    )
    parser.add_argument(
        "--generators", default=None,
        help="Directory of template generators",
    )
    parser.add_argument(
        "--manifest", default=None,
        help="Path to codefactory.manifest.json",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command")

    # generators
    gen = sub.add_parser("generators", help="Generator catalog")
    gen_sub = gen.add_subparsers(dest="subcommand")
    gen_sub.add_parser("list", help="List available generators")
    show = gen_sub.add_parser("show", help="Show a generator's parameters")
    show.add_argument("name")

    # create
    create = sub.add_parser("create", help="Render a generator into a file")
    create.add_argument("generator", help="Generator name")
    create.add_argument(
        "path", nargs="?", default=None,
        help="Target file (default: the generator's output path)",
    )
    _add_param_args(create)
    create.add_argument(
        "--id", default=None,
        help="Unit id (default: the generator name)",
    )
    create.add_argument(
        "--dry-run", action="store_true",
        help="Report without writing",
    )

    # sync
    sync = sub.add_parser("sync", help="Regenerate the units in a file")
    sync.add_argument("file")
    sync.add_argument(
        "--dry-run", action="store_true",
        help="Report without writing",
    )

    sync_all = sub.add_parser("sync-all", help="Sync every marked file in a directory")
    sync_all.add_argument(
        "directory", nargs="?", default=None,
        help="Directory to scan (default: project root)",
    )
    sync_all.add_argument(
        "--dry-run", action="store_true",
        help="Report without writing",
    )

    # inspect
    insp = sub.add_parser("inspect", help="Show parameters extracted from a file")
    insp.add_argument("file")
    insp.add_argument(
        "--json", action="store_true",
        help="Output machine-readable JSON",
    )

    # manifest
    man = sub.add_parser("manifest", help="Build manifest operations")
    man_sub = man.add_subparsers(dest="subcommand")

    add = man_sub.add_parser("add", help="Record a generator call")
    add.add_argument("id")
    add.add_argument("generator")
    add.add_argument("output_path")
    _add_param_args(add)
    add.add_argument(
        "--depends-on", nargs="*", default=[],
        help="Ids of calls that must be produced first",
    )

    rm = man_sub.add_parser("remove", help="Remove a recorded call")
    rm.add_argument("id")

    man_sub.add_parser("list", help="List recorded calls")
    man_sub.add_parser("order", help="Show execution order")
    man_sub.add_parser("validate", help="Validate the call graph")

    build = man_sub.add_parser("build", help="Produce every call in order")
    build.add_argument(
        "--dry-run", action="store_true",
        help="Preview without writing",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    dispatch = {
        ("generators", "list"): cmd_generators_list,
        ("generators", "show"): cmd_generators_show,
        ("create", ""): cmd_create,
        ("sync", ""): cmd_sync,
        ("sync-all", ""): cmd_sync_all,
        ("inspect", ""): cmd_inspect,
        ("manifest", "add"): cmd_manifest_add,
        ("manifest", "remove"): cmd_manifest_remove,
        ("manifest", "list"): cmd_manifest_list,
        ("manifest", "order"): cmd_manifest_order,
        ("manifest", "validate"): cmd_manifest_validate,
        ("manifest", "build"): cmd_manifest_build,
    }

    subcommand: str | None = getattr(args, "subcommand", None)
    handler = dispatch.get((args.command, subcommand or ""))
    if handler:
        try:
            return handler(args)
        except (CodefactoryError, OSError) as e:
            print(f"ERROR: {e}")
            return 1

    parser.parse_args([args.command, "--help"])
    return 0


if __name__ == "__main__":
    sys.exit(main())

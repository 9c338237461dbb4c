"""Produce CLI commands — create, sync, sync-all, inspect."""

import argparse
import json

from codefactory_engine.cli._common import make_producer, parse_params


def cmd_create(args: argparse.Namespace) -> int:
    producer = make_producer(args)
    params = parse_params(args)

    path = args.path
    if not path:
        definition = producer.registry.resolve(args.generator)
        render_path = getattr(definition, "render_output_path", None)
        path = render_path(params) if render_path else None
        if not path:
            print(f"ERROR: Generator '{args.generator}' has no output path; pass one explicitly")
            return 1

    action = producer.create(args.generator, params, path, unit_id=args.id, dry_run=args.dry_run)
    prefix = "[DRY RUN] " if args.dry_run else ""
    print(f"{prefix}{action}: {path}")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    producer = make_producer(args)
    action = producer.sync(args.file, dry_run=args.dry_run)
    prefix = "[DRY RUN] " if args.dry_run else ""
    print(f"{prefix}{action}: {args.file}")
    return 0


def cmd_sync_all(args: argparse.Namespace) -> int:
    producer = make_producer(args)
    report = producer.sync_all(args.directory, dry_run=args.dry_run)
    print(report.summary())
    return 0 if report.passed else 1


def cmd_inspect(args: argparse.Namespace) -> int:
    producer = make_producer(args)
    units = producer.inspect(args.file)

    if args.json:
        print(json.dumps(units, indent=2))
        return 0

    for unit in units:
        label = unit["generator"] if not unit["id"] else f"{unit['generator']} (id: {unit['id']})"
        print(f"\n  {label}")
        print(f"  {'─' * max(len(label), 40)}")
        if not unit["syncable"]:
            print("  (function generator, not syncable)")
            continue
        for name, value in unit["params"].items():
            print(f"  {name + ':':<20}{json.dumps(value)}")
    print()
    return 0

"""Generator CLI commands."""

import argparse
import json

from codefactory_engine.cli._common import load_registry


def cmd_generators_list(args: argparse.Namespace) -> int:
    registry = load_registry(args)
    catalog = registry.catalog()

    if not catalog:
        print("No generators found.")
        return 0

    print(f"\n  {'Name':<30} {'Kind':<10} {'Sync':<6} Description")
    print(f"  {'─' * 76}")
    for meta in catalog:
        sync = "yes" if meta["syncable"] else "no"
        print(f"  {meta['name']:<30} {meta['kind']:<10} {sync:<6} {meta['description']}")
    print(f"\n  {len(catalog)} generator(s)")
    return 0


def cmd_generators_show(args: argparse.Namespace) -> int:
    registry = load_registry(args)
    definition = registry.get(args.name)
    if definition is None:
        print(f"ERROR: Generator '{args.name}' not found")
        return 1

    meta = definition.metadata()
    print(f"\n  {meta['name']}")
    print(f"  {'─' * max(len(meta['name']), 40)}")
    print(f"  {'Kind:':<14}{meta['kind']}")
    print(f"  {'Description:':<14}{meta['description']}")
    if meta["output_path"]:
        print(f"  {'Output path:':<14}{meta['output_path']}")
    print(f"  {'Syncable:':<14}{'yes' if meta['syncable'] else 'no'}")

    if meta["params"]:
        print("\n  Parameters:")
        for name, spec in meta["params"].items():
            flag = "" if spec["required"] else " (optional)"
            line = f"    {name + ':':<20}{spec['type']}{flag}"
            if spec.get("description"):
                line += f" — {spec['description']}"
            print(line)

    if meta["examples"]:
        print("\n  Examples:")
        for example in meta["examples"]:
            print(f"    {json.dumps(example)}")
    print()
    return 0

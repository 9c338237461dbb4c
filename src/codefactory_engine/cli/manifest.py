"""Manifest CLI commands."""

import argparse

from codefactory_engine.cli._common import load_manifest, make_producer, parse_params


def cmd_manifest_add(args: argparse.Namespace) -> int:
    manifest = load_manifest(args)
    call = manifest.add(
        args.id,
        args.generator,
        params=parse_params(args),
        output_path=args.output_path,
        depends_on=args.depends_on,
    )
    manifest.save()
    print(f"Added call '{call.id}' ({call.generator} -> {call.output_path})")
    return 0


def cmd_manifest_remove(args: argparse.Namespace) -> int:
    manifest = load_manifest(args)
    manifest.remove(args.id)
    manifest.save()
    print(f"Removed call '{args.id}'")
    return 0


def cmd_manifest_list(args: argparse.Namespace) -> int:
    manifest = load_manifest(args, validate=False)
    calls = manifest.calls()

    if not calls:
        print("No calls in manifest.")
        return 0

    print(f"\n  {'Id':<25} {'Generator':<20} {'Output':<35} Depends on")
    print(f"  {'─' * 92}")
    for call in calls:
        deps = ", ".join(call.depends_on) or "-"
        print(f"  {call.id:<25} {call.generator:<20} {call.output_path:<35} {deps}")
    print(f"\n  {len(calls)} call(s)")
    return 0


def cmd_manifest_order(args: argparse.Namespace) -> int:
    manifest = load_manifest(args)
    for i, call in enumerate(manifest.execution_order(), 1):
        print(f"  {i:>3}. {call.id}")
    return 0


def cmd_manifest_validate(args: argparse.Namespace) -> int:
    from codefactory_engine.manifest.resolver import validate_graph

    manifest = load_manifest(args, validate=False)
    result = validate_graph(manifest.calls())
    print(result.summary())
    return 0 if result.passed else 1


def cmd_manifest_build(args: argparse.Namespace) -> int:
    manifest = load_manifest(args)
    producer = make_producer(args)

    result = producer.build(manifest, dry_run=args.dry_run)
    if not args.dry_run and result.success:
        manifest.touch()
        manifest.save()

    print(result.summary())
    return 0 if result.success else 1

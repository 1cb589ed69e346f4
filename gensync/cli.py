"""Command-line interface for inspecting and following remote generations."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from gensync.client import HttpEngineClient
from gensync.errors import GensyncError, UnknownGenerationError
from gensync.models import Generation, GenerationOrigin, dump_generation
from gensync.reconciler import GenerationCallbacks
from gensync.runner import GenerationRunnerSystem
from gensync.settings import EngineSettings, ReconcilerSettings


def build_client(args: argparse.Namespace) -> HttpEngineClient:
    settings = EngineSettings(base_url=args.base_url) if args.base_url else EngineSettings()
    return HttpEngineClient(settings)


def _print_transition(generation: Generation) -> None:
    print(f"{generation.id}\t{generation.status}")


async def _run_status(args: argparse.Namespace) -> int:
    async with build_client(args) as client:
        try:
            generation = await client.get_generation(args.generation_id)
        except UnknownGenerationError:
            print(f"Unknown generation: {args.generation_id}")
            return 1

    print(json.dumps(dump_generation(generation), indent=2, sort_keys=True))
    return 0


async def _run_watch(args: argparse.Namespace) -> int:
    overrides = {}
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval

    async with build_client(args) as client:
        system = GenerationRunnerSystem(client, reconciler_settings=ReconcilerSettings(**overrides))
        callbacks = GenerationCallbacks(
            on_generation_started=_print_transition,
            on_generation_completed=_print_transition,
            on_generation_failed=_print_transition,
            on_generation_cancelled=_print_transition,
        )
        try:
            final = await system.watch_generation(args.generation_id, callbacks)
        except UnknownGenerationError:
            print(f"Unknown generation: {args.generation_id}")
            return 1
        finally:
            system.close()

    return 0 if final.status == "completed" else 2


async def _run_cancel(args: argparse.Namespace) -> int:
    async with build_client(args) as client:
        try:
            await client.cancel_generation(args.generation_id)
        except UnknownGenerationError:
            print(f"Unknown generation: {args.generation_id}")
            return 1

    print(f"requested cancel for {args.generation_id}")
    return 0


async def _run_node_generations(args: argparse.Namespace) -> int:
    origin = GenerationOrigin(type=args.origin_type, id=args.origin_id)
    async with build_client(args) as client:
        system = GenerationRunnerSystem(client)
        try:
            await system.fetch_node_generations(args.node_id, origin)
            generations = system.node_generation_map.get(args.node_id, ())
        finally:
            system.close()

    if not generations:
        print(f"No generations for node {args.node_id}")
        return 0

    for generation in generations:
        print(f"{generation.id}\t{generation.status}\t{generation.created_at}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gensync")
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--log-level", default="WARNING")

    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status", help="Show a generation")
    status_parser.add_argument("generation_id")
    status_parser.set_defaults(handler=_run_status)

    watch_parser = subparsers.add_parser("watch", help="Follow a generation until it ends")
    watch_parser.add_argument("generation_id")
    watch_parser.add_argument("--timeout", type=float, default=None)
    watch_parser.add_argument("--poll-interval", type=float, default=None)
    watch_parser.set_defaults(handler=_run_watch)

    cancel_parser = subparsers.add_parser("cancel", help="Request remote cancellation")
    cancel_parser.add_argument("generation_id")
    cancel_parser.set_defaults(handler=_run_cancel)

    node_parser = subparsers.add_parser("node-generations", help="List generations of a node")
    node_parser.add_argument("node_id")
    node_parser.add_argument("--origin-type", required=True)
    node_parser.add_argument("--origin-id", required=True)
    node_parser.set_defaults(handler=_run_node_generations)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        return asyncio.run(args.handler(args))
    except GensyncError as exc:
        print(f"error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

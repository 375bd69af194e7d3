#!/usr/bin/env python3
"""
Generation Gateway - Main Entry Point

Submits and tracks media generation tasks through the local proxy.

Usage:
    # List registered providers and configuration issues
    python main.py providers

    # Submit a video and return immediately
    python main.py submit sora2 --prompt "A lighthouse at dusk" --duration 15 --quality pro

    # Check a task once / wait until it finishes
    python main.py status dayuapi task-123
    python main.py watch sora2 task-123 --backend kie

    # Show model catalogs
    python main.py catalog --category video
    python main.py catalog --remote
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("generation")


def print_result(result):
    print(json.dumps(result.model_dump(mode="json", exclude={"raw"}), indent=2))


def list_providers():
    """Print the registry and any configuration issues."""
    from core.config import get_config
    from generation.registry import get_registry

    config = get_config()
    for provider in get_registry():
        caps = provider.capabilities
        durations = ",".join(caps.durations) or "any"
        print(f"{provider.name:<10} {provider.category.value:<6} {provider.display_name:<22} durations={durations}")

    print(f"\nSora backend: {config.video.sora_backend}")
    for issue in config.validate():
        print(f"  ! {issue}")


def build_config(args) -> dict:
    config = {"aspect_ratio": args.aspect_ratio, "duration": args.duration}
    if args.quality:
        config["quality"] = args.quality
    else:
        config["hd"] = args.hd
    return config


async def submit_task(args) -> int:
    from generation import GenerationClient, GenerationError

    client = GenerationClient(on_progress=lambda task_id, percent: logger.info(f"{task_id}: {percent}%"))
    try:
        handle = await client.submit(
            args.provider,
            args.prompt,
            config=build_config(args),
            reference_image_url=args.reference,
            backend=args.backend,
        )
        print(json.dumps(handle.model_dump(mode="json", exclude={"raw"}), indent=2))

        if not args.wait:
            return 0

        result = await client.wait(args.provider, handle, interval=args.interval, timeout=args.timeout)
        print_result(result)
        return 0 if result.status.value == "completed" else 1

    except GenerationError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    finally:
        await client.close()


async def check_task(args, wait: bool) -> int:
    from generation import GenerationClient, GenerationError

    client = GenerationClient(on_progress=lambda task_id, percent: logger.info(f"{task_id}: {percent}%"))
    try:
        if wait:
            result = await client.wait(
                args.provider, args.task_id, interval=args.interval, timeout=args.timeout, backend=args.backend
            )
        else:
            result = await client.check(args.provider, args.task_id, backend=args.backend)
        print_result(result)
        return 1 if result.status.value == "error" else 0

    except GenerationError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    finally:
        await client.close()


async def show_catalog(category: Optional[str], remote: bool) -> int:
    if remote:
        from generation.model_config import get_model_config_loader, summarize

        loader = get_model_config_loader()
        try:
            print(summarize(await loader.get_all_models_config()) or "(no remote models)")
        finally:
            await loader.close()
        return 0

    from generation.fallback import get_model_catalog
    from generation.types import MediaCategory

    catalog = get_model_catalog()
    categories = [MediaCategory(category)] if category else list(MediaCategory)
    for cat in categories:
        print(f"[{cat.value}]")
        for model in catalog.models(cat):
            marker = "*" if model.is_default else " "
            print(f" {marker} {model.id:<40} quality={model.quality} speed={model.speed} cost={model.cost}")
    return 0


def add_task_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("provider", help="Registered provider name")
    parser.add_argument("task_id", help="Task id returned by submit")
    parser.add_argument("--backend", help="sora2 only: backend that accepted the task")


def add_wait_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--interval", type=float, help="Seconds between status checks")
    parser.add_argument("--timeout", type=float, help="Give up after this many seconds")


def main():
    parser = argparse.ArgumentParser(
        description="Generation Gateway - multi-provider media generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Generate a portrait video on Kie and wait for it
    python main.py submit kie --prompt "City timelapse" --aspect-ratio 9:16 --duration 15 --hd --wait

    # Generate an image
    python main.py submit fal_image --prompt "Watercolor fox"
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("providers", help="List providers and configuration issues")

    # Submit command
    submit_parser = subparsers.add_parser("submit", help="Submit a generation task")
    submit_parser.add_argument("provider", help="Registered provider name")
    submit_parser.add_argument("--prompt", "-p", required=True, help="Generation prompt")
    submit_parser.add_argument("--reference", "-r", help="Reference image URL")
    submit_parser.add_argument("--aspect-ratio", choices=["16:9", "9:16"], default="16:9")
    submit_parser.add_argument("--duration", "-d", default="10", help="Seconds")
    submit_parser.add_argument("--hd", action="store_true", help="High definition output")
    submit_parser.add_argument("--quality", "-q", choices=["standard", "pro"], help="sora2 quality")
    submit_parser.add_argument("--backend", help="sora2 only: override SORA_BACKEND")
    submit_parser.add_argument("--wait", "-w", action="store_true", help="Wait for completion")
    add_wait_arguments(submit_parser)

    # Status command
    status_parser = subparsers.add_parser("status", help="Check a task once")
    add_task_arguments(status_parser)

    # Watch command
    watch_parser = subparsers.add_parser("watch", help="Wait until a task finishes")
    add_task_arguments(watch_parser)
    add_wait_arguments(watch_parser)

    # Catalog command
    catalog_parser = subparsers.add_parser("catalog", help="Show model catalogs")
    catalog_parser.add_argument("--category", "-c", choices=["image", "video", "text", "audio"])
    catalog_parser.add_argument("--remote", action="store_true", help="Show the remote platform catalog")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Run appropriate command
    if args.command == "providers":
        list_providers()

    elif args.command == "submit":
        sys.exit(asyncio.run(submit_task(args)))

    elif args.command == "status":
        sys.exit(asyncio.run(check_task(args, wait=False)))

    elif args.command == "watch":
        sys.exit(asyncio.run(check_task(args, wait=True)))

    elif args.command == "catalog":
        sys.exit(asyncio.run(show_catalog(args.category, args.remote)))


if __name__ == "__main__":
    main()

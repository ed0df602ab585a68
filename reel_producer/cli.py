"""
Command Line Interface
======================

Usage:
    reel-producer run --image-url https://example.com/photo.jpg --recipient me@example.com
    reel-producer run --image-url https://example.com/photo.jpg --duration 10 --auto-publish
    reel-producer serve --port 9000
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, List

import httpx

from .core.config import Config, set_config
from .core.exceptions import ReelProducerError
from .core.logging import setup_logging
from .workflow import WorkflowConfig, WorkflowOrchestrator, WorkflowTrigger, VideoDuration


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="reel-producer",
        description="Generate an Instagram Reel from an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s run --image-url https://example.com/photo.jpg
  %(prog)s run --image-url https://example.com/photo.jpg --auto-publish
  %(prog)s serve --host 127.0.0.1 --port 9000
        """,
    )
    parser.add_argument(
        "--config",
        help="Path to config file (default: config/defaults.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Run the workflow once")
    run.add_argument(
        "-i", "--image-url",
        help="Source image URL (default: a random configured default image)",
    )
    run.add_argument(
        "-r", "--recipient",
        help="Approval email recipient (default: workflow.default_recipient)",
    )
    run.add_argument(
        "-d", "--duration",
        choices=[d.value for d in VideoDuration],
        help="Video duration in seconds",
    )
    run.add_argument(
        "--auto-publish",
        action="store_true",
        help="Create the Instagram container immediately and wait for it to publish",
    )

    serve = commands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", help="Bind host (default: server.host)")
    serve.add_argument("--port", type=int, help="Bind port (default: server.port)")

    return parser.parse_args(argv)


async def run_workflow(args: argparse.Namespace, config: Config) -> int:
    """Run one workflow; returns the process exit code."""
    async with httpx.AsyncClient(timeout=httpx.Timeout(60)) as http_client:
        orchestrator = WorkflowOrchestrator.from_config(config, http_client)

        image_url = args.image_url
        if not image_url:
            image_url = WorkflowTrigger(orchestrator).pick_image()

        workflow_config = WorkflowConfig(
            image_url=image_url,
            recipient_email=args.recipient,
            video_duration=VideoDuration(args.duration or config.workflow.default_duration),
            auto_publish_to_instagram=args.auto_publish,
        )

        result = await orchestrator.execute_complete_workflow(workflow_config)
        print(json.dumps(result.to_dict(), indent=2, default=str))

        if orchestrator.register.pending_jobs:
            print(f"Waiting {orchestrator.register.publish_in} for Instagram publish...", file=sys.stderr)
            await orchestrator.register.join()
            for container in orchestrator.list_containers():
                print(json.dumps(container.to_dict(), indent=2), file=sys.stderr)

    return 0 if result.success else 1


def serve(args: argparse.Namespace, config: Config) -> int:
    import uvicorn
    from .server import create_app

    uvicorn.run(
        create_app(config=config),
        host=args.host or config.server.host,
        port=args.port or config.server.port,
        log_level=config.server.log_level,
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = Config.load(args.config)
        set_config(config)

        if args.command == "serve":
            return serve(args, config)
        return asyncio.run(run_workflow(args, config))

    except KeyboardInterrupt:
        print("\nCancelled", file=sys.stderr)
        return 130
    except ReelProducerError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

import argparse
import asyncio
import dataclasses
import logging
import sys

from service_health.config import load_settings
from service_health.errors import ServiceHealthError
from service_health.orchestrator import HealthCollector

log = logging.getLogger("main")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Collect Microsoft 365 service health into a JSON snapshot.",
    )
    parser.add_argument("-o", "--output", help="snapshot path (overrides HEALTH_OUTPUT_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def cli(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        settings = load_settings()
        if args.output:
            settings = dataclasses.replace(settings, output_path=args.output)
        asyncio.run(HealthCollector(settings).run())
    except ServiceHealthError as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(cli())

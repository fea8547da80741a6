"""
Command line entry point: generate a world from a config file and export it.

Usage:
    py-mapgen --config world.toml --output output/
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from .config import settings
from .config.world_settings import ConfigurationError, WorldGenerationParams
from .core.pipeline import WorldGenerator
from .export.images import RasterShapeError, export_images
from .export.json_export import export_json
from .utils.log_config import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="py-mapgen",
        description="Generate a seamless world map with biomes, rivers, provinces and regions",
    )
    parser.add_argument("--config", "-c", required=True, type=Path, help="World config file (TOML or JSON)")
    parser.add_argument(
        "--output", "-o", type=Path, default=Path(settings.output_dir), help="Output directory"
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument(
        "--log-format", choices=["json", "plain"], default=settings.log_format, help="Logging format"
    )
    parser.add_argument("--no-images", action="store_true", help="Skip PNG export")
    return parser


def print_summary(stats: dict, written: List[Path]) -> None:
    print(f"World {stats['world_type']} {stats['width']}x{stats['height']} (seed {stats['seed']})")
    print(f"  land ratio:       {stats['land_ratio']:.3f}")
    print(f"  provinces:        {stats['provinces']} ({stats['land_provinces']} land, {stats['sea_provinces']} sea)")
    print(f"  regions:          {stats['regions']}")
    points = ", ".join(f"{kind}: {count}" for kind, count in stats["strategic_points"].items() if count)
    print(f"  strategic points: {points or 'none'}")
    print(f"  files written:    {len(written)}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        params = WorldGenerationParams.from_file(args.config)
    except ConfigurationError as e:
        logger.error("Invalid configuration", config=str(args.config), error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2

    world = WorldGenerator(params).run()

    try:
        written = export_json(world, args.output)
        if not args.no_images:
            written += export_images(world, args.output)
    except (OSError, RasterShapeError) as e:
        logger.error("Export failed", output=str(args.output), error=str(e))
        print(f"error: export failed: {e}", file=sys.stderr)
        return 1

    print_summary(world.stats(), written)
    return 0


if __name__ == "__main__":
    sys.exit(main())

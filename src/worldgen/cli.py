"""Command-line interface for world generation."""

import argparse
import logging
import time


def main() -> None:
    """CLI entry point for world generation."""
    parser = argparse.ArgumentParser(description="Generate a procedural world")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Config name in configs/ or path to a .toml file",
    )
    parser.add_argument("--width", type=int, default=None, help="World width")
    parser.add_argument("--height", type=int, default=None, help="World height")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--sea-level", type=float, default=None, help="Land/water threshold (0-1)"
    )
    parser.add_argument(
        "--debug-images",
        type=str,
        default=None,
        help="Directory to save debug images (optional)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args()

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Import here to avoid slow startup for --help
    from .config import find_config, load_config
    from .generator import generate_world
    from .terrain.config import WorldGenConfig

    config = load_config(find_config(args.config)) if args.config else WorldGenConfig()

    overrides = {
        "width": args.width,
        "height": args.height,
        "seed": args.seed,
        "sea_level": args.sea_level,
        "debug_output_dir": args.debug_images,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = WorldGenConfig.model_validate({**config.model_dump(), **overrides})

    print(f"Generating {config.width}x{config.height} world with seed {config.seed}")
    print()

    start_time = time.time()
    world, store = generate_world(config)
    gen_time = time.time() - start_time

    print()
    print(f"Generation complete in {gen_time:.1f}s")
    print()

    for continent in world.continents:
        print(f"  Continent {continent.id}: {continent.name} ({continent.area:,} tiles)")
    for island in world.islands:
        print(f"  Island {island.id}: {island.name} [{island.type.value}] ({island.area} tiles)")
    for river in world.rivers:
        print(f"  River {river.id}: {river.name} [{river.kind.value}] length {river.length:.1f}")
    for lake in world.lakes:
        print(f"  Lake {lake.id}: {lake.name} radius {lake.radius} ({lake.water_type.value})")
    for cave in world.caves:
        print(f"  Cave {cave.id}: {cave.name} with {len(cave.chambers)} chambers")

    stats = store.get_world_statistics()
    print()
    print(f"Tiles: {stats.total_tiles:,}")
    for tile_type, count in sorted(stats.tile_types.items()):
        print(f"  {tile_type}: {count:,}")
    print(f"Average soil quality: {stats.average_soil_quality:.3f}")
    print(f"Average vegetation density: {stats.average_vegetation_density:.3f}")

    if world.validation is not None and not world.validation.passed:
        print(f"Validation failed with {len(world.validation.errors)} errors")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Tilesmith - Layout Generator

Generates a tile layout from stored pattern databases and writes it as a
layout JSON file (and optionally as raw little-endian uint16 tiles).
"""

import argparse
import logging
import sys
from pathlib import Path

from tilesmith.core import PatternRegistry, SelectionTier, SmartSelector, TerrainCatalog
from tilesmith.core.atlas_index import load_atlas_directory
from tilesmith.core.neighbors import EdgePolicy
from tilesmith.core.pattern_registry import DEFAULT_PATTERN_DIR
from tilesmith.formats import find_layout_files
from tilesmith.generation import GenerationMode, GenerationParams, LayoutSynthesizer
from tilesmith.generation.themes import THEMES

DATA_DIR = Path(__file__).parent.parent / "data"


def print_terrain_map(layout, catalog: TerrainCatalog):
    """One character per cell: first letter of the terrain name."""
    for row in range(layout.height):
        chars = []
        for col in range(layout.width):
            terrain = catalog.get(layout.get(row, col))
            chars.append(terrain.name[0] if terrain is not None else "?")
        print("  " + "".join(chars))


def main():
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a tile layout from learned patterns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Reproducible noise layout:
    python -m tools.generate_layout out.json --seed 12345

  Cellular highland map with a sea border and two forts:
    python -m tools.generate_layout out.json --mode cellular --theme highland \\
        --border sea --strongholds 2 --seed 7

  Extract the corpus first if the pattern cache is missing:
    python -m tools.generate_layout out.json --corpus data/corpus
        """,
    )
    parser.add_argument("output", help="Layout JSON file to write")
    parser.add_argument("-W", "--width", type=int, default=20, help="Layout width (default: 20)")
    parser.add_argument("-H", "--height", type=int, default=15, help="Layout height (default: 15)")
    parser.add_argument("-a", "--atlas-id", type=int, default=0, help="Target atlas (default: 0)")
    parser.add_argument("-s", "--seed", type=int, help="Seed for a reproducible layout")
    parser.add_argument(
        "-m",
        "--mode",
        choices=[m.value for m in GenerationMode],
        default=GenerationMode.NOISE.value,
        help="Terrain layout strategy (default: noise)",
    )
    parser.add_argument(
        "-t", "--theme", choices=sorted(THEMES), default="grassland", help="Terrain theme"
    )
    parser.add_argument(
        "--edge-policy",
        choices=[p.value for p in EdgePolicy],
        default=EdgePolicy.BACKGROUND.value,
        help="How off-grid neighbors read when selecting tiles (default: background)",
    )
    parser.add_argument("--border", help="Terrain name for a one-cell outer border")
    parser.add_argument("--strongholds", type=int, default=0, help="Forts to stamp (default: 0)")
    parser.add_argument(
        "--no-repair", action="store_true", help="Skip the connectivity repair stage"
    )
    parser.add_argument("--max-passes", type=int, default=3, help="Realization pass budget")
    parser.add_argument(
        "--catalog",
        default=str(DATA_DIR / "terrain_catalog.json"),
        help="Terrain catalog JSON (default: data/terrain_catalog.json)",
    )
    parser.add_argument(
        "--patterns",
        default=str(DEFAULT_PATTERN_DIR),
        help="Pattern directory (default: data/patterns)",
    )
    parser.add_argument(
        "--corpus", help="Layout corpus to extract from when pattern files are missing"
    )
    parser.add_argument(
        "--atlases",
        default=str(DATA_DIR / "atlases"),
        help="Atlas index directory, used with --corpus (default: data/atlases)",
    )
    parser.add_argument("--bin", help="Also write raw uint16 tile indices to this file")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not print the terrain map")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    catalog = TerrainCatalog.load(args.catalog)
    registry = PatternRegistry()
    if args.corpus:
        atlases = load_atlas_directory(args.atlases)
        extracted = registry.ensure(
            args.patterns,
            find_layout_files(args.corpus),
            catalog,
            atlases,
            corpus_root=args.corpus,
        )
        if extracted:
            print(f"Extracted patterns for atlases {extracted}")
    else:
        registry.load_directory(args.patterns)

    params = GenerationParams(
        width=args.width,
        height=args.height,
        atlas_id=args.atlas_id,
        seed=args.seed,
        mode=GenerationMode(args.mode),
        theme=args.theme,
        edge_policy=EdgePolicy(args.edge_policy),
        border_terrain=args.border,
        strongholds=args.strongholds,
        repair_connectivity=not args.no_repair,
        max_passes=args.max_passes,
    )

    selector = SmartSelector()
    synthesizer = LayoutSynthesizer(registry, catalog, selector)
    try:
        layout, grid = synthesizer.generate(params)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    grid.to_layout_data(source_id=Path(args.output).stem).save(args.output)
    if args.bin:
        Path(args.bin).write_bytes(grid.to_bytes())

    print("Tilesmith - Layout Generator")
    print("=" * 50)
    print(f"Mode: {params.mode.value}, theme: {params.theme}, seed: {params.seed}")
    print(f"Size: {grid.width}x{grid.height} on atlas {grid.atlas_id}")
    if not args.quiet:
        print("\nTerrain:")
        print_terrain_map(layout, catalog)

    print("\nTile selections:")
    for tier in SelectionTier:
        print(f"  {tier.value:<8} {selector.tier_counts[tier]:>6}")
    if selector.tier_counts[SelectionTier.DEFAULT]:
        print("Warning: some cells fell back to the default tile (no patterns for their terrain)")

    print(f"\nSaved layout to: {args.output}")
    if args.bin:
        print(f"Saved tile bytes to: {args.bin}")


if __name__ == "__main__":
    main()

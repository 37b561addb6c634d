#!/usr/bin/env python3
"""
Tilesmith - Pattern Extraction Tool

Scans a corpus of hand-authored layouts and writes one pattern database
per atlas (atlas_<id>.json) into a pattern directory.
"""

import argparse
import logging
import sys
from pathlib import Path

from tilesmith.core import PatternExtractor, PatternRegistry, QualityTier, TerrainCatalog
from tilesmith.core.atlas_index import load_atlas_directory
from tilesmith.core.pattern_registry import DEFAULT_PATTERN_DIR
from tilesmith.formats import find_layout_files

DATA_DIR = Path(__file__).parent.parent / "data"


def main():
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Extract tile placement patterns from a layout corpus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Extract the default corpus:
    python -m tools.extract_patterns data/corpus

  Extract into a custom directory:
    python -m tools.extract_patterns data/corpus -o build/patterns --verbose
        """,
    )
    parser.add_argument("corpus", help="Directory of layout JSON files")
    parser.add_argument(
        "--catalog",
        default=str(DATA_DIR / "terrain_catalog.json"),
        help="Terrain catalog JSON (default: data/terrain_catalog.json)",
    )
    parser.add_argument(
        "--atlases",
        default=str(DATA_DIR / "atlases"),
        help="Directory of atlas index JSON files (default: data/atlases)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=str(DEFAULT_PATTERN_DIR),
        help="Pattern directory to write (default: data/patterns)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show per-layout progress")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    corpus_dir = Path(args.corpus)
    if not corpus_dir.is_dir():
        print(f"Error: {args.corpus} is not a directory")
        sys.exit(1)

    catalog = TerrainCatalog.load(args.catalog)
    atlases = load_atlas_directory(args.atlases)
    if not atlases:
        print(f"Error: no atlas indexes found in {args.atlases}")
        sys.exit(1)

    print("Tilesmith - Pattern Extraction")
    print("=" * 50)

    files = find_layout_files(corpus_dir)
    print(f"Corpus: {corpus_dir} ({len(files)} files)")
    print(f"Catalog: {len(catalog)} terrains, atlases: {sorted(atlases)}")

    extractor = PatternExtractor(catalog, atlases, corpus_root=corpus_dir)
    databases = extractor.extract(files)

    registry = PatternRegistry(databases)
    written = registry.save_directory(args.output)

    stats = extractor.stats
    print(f"\nLayouts scanned: {stats.layouts_scanned}")
    print(f"Layouts skipped: {stats.layouts_skipped}")
    print(f"Observations: {stats.observations}")
    if stats.unknown_terrain_cells:
        print(f"Cells with uncataloged terrain: {stats.unknown_terrain_cells}")

    for atlas_id in registry:
        db = registry.get(atlas_id)
        tiers = db.tier_counts()
        print(
            f"  Atlas {atlas_id}: {len(db)} patterns "
            f"(high {tiers[QualityTier.HIGH]}, medium {tiers[QualityTier.MEDIUM]}, "
            f"low {tiers[QualityTier.LOW]})"
        )

    if stats.skip_reasons:
        print("\nSkipped layouts:")
        for source, reason in sorted(stats.skip_reasons.items()):
            print(f"  {source}: {reason}")

    print(f"\nWrote {len(written)} pattern files to {args.output}")


if __name__ == "__main__":
    main()

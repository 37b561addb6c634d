#!/usr/bin/env python3
"""
Tilesmith - Pattern Quality Report

Summarizes stored pattern databases: quality tiers, per-terrain tile pools
and the best-corroborated patterns.
"""

import argparse
import logging
import sys
from pathlib import Path

from tilesmith.core import PatternDatabase, PatternRegistry, QualityTier, quality_score
from tilesmith.core.neighbors import COMPASS
from tilesmith.core.pattern_registry import DEFAULT_PATTERN_DIR


def format_context(context) -> str:
    return " ".join(f"{d}={t}" for d, t in zip(COMPASS, context))


def report_atlas(db: PatternDatabase, top: int):
    """Print the report for one atlas."""
    print(f"\nAtlas {db.atlas_id}")
    print("-" * 50)

    if db.is_empty():
        print("  (empty)")
        return

    tiers = db.tier_counts()
    total = len(db)
    print(f"  Patterns: {total}")
    for tier in QualityTier:
        share = 100.0 * tiers[tier] / total if total else 0.0
        print(f"    {tier.value:<7} {tiers[tier]:>6}  ({share:.1f}%)")

    print("  Terrain pools:")
    for terrain_id in db.terrain_ids:
        ranked = db.ranked_tiles_for_terrain(terrain_id)
        shown = ", ".join(f"{t}x{db.tile_count(terrain_id, t)}" for t in ranked[:6])
        more = f" (+{len(ranked) - 6} more)" if len(ranked) > 6 else ""
        print(f"    terrain {terrain_id}: {len(ranked)} tiles [{shown}]{more}")

    if top > 0:
        best = sorted(db, key=lambda p: (-quality_score(p), -p.frequency, p.signature))[:top]
        print(f"  Top {len(best)} patterns:")
        for pattern in best:
            print(
                f"    {quality_score(pattern):.2f} center={pattern.center} "
                f"[{format_context(pattern.context)}] "
                f"tiles={sorted(pattern.valid_tiles)} freq={pattern.frequency} "
                f"sources={len(pattern.sources)}"
            )


def main():
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Report on stored tile pattern databases")
    parser.add_argument(
        "patterns",
        nargs="?",
        default=str(DEFAULT_PATTERN_DIR),
        help="Pattern directory (default: data/patterns)",
    )
    parser.add_argument("-a", "--atlas", type=int, help="Only report this atlas id")
    parser.add_argument(
        "-t", "--top", type=int, default=10, help="Number of top patterns to list (default: 10)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.patterns).is_dir():
        print(f"Error: {args.patterns} is not a directory")
        sys.exit(1)

    registry = PatternRegistry()
    loaded = registry.load_directory(args.patterns)

    print("Tilesmith - Pattern Quality Report")
    print("=" * 50)
    print(f"Directory: {args.patterns} ({len(loaded)} atlases)")
    if registry.rejected:
        print(f"Rejected (corrupt): {sorted(registry.rejected)}")

    atlas_ids = [args.atlas] if args.atlas is not None else list(registry)
    for atlas_id in atlas_ids:
        if atlas_id not in registry:
            print(f"\nAtlas {atlas_id}: no pattern file")
            continue
        report_atlas(registry.get(atlas_id), args.top)


if __name__ == "__main__":
    main()

"""
Rendering of deduplication results: console summary and markdown report.
"""

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .deduplication import DeduplicationResult
from .merge import MergeStats
from .patterns import PairScore

BANNER = "=" * 60
MAX_NAMES_SHOWN = 5


def format_merge(stats: MergeStats) -> str:
    """One-line description of a committed merge."""
    ids = ", ".join(f"#{i}" for i in stats.merged_ids)
    return (
        f"Merged {ids} into #{stats.primary_id}: "
        f"{stats.books_updated} book link(s), {stats.contents_updated} content link(s) rewritten, "
        f"{stats.deleted_entities} entit{'y' if stats.deleted_entities == 1 else 'ies'} deleted"
    )


def format_summary(result: DeduplicationResult, dry_run: bool = False) -> str:
    """Console summary for one entity kind."""
    kind = result.entity_kind
    lines = [
        f"{kind.plural.title()}:",
        f"  Entities scanned:         {result.total_entities:>6,}",
        f"  Duplicate groups:         {len(result.duplicate_groups):>6,}",
        f"  Groups merged:            {len(result.merged_groups):>6,}",
    ]
    if result.skipped_low_confidence:
        lines.append(f"  Skipped (low confidence): {result.skipped_low_confidence:>6,}")
    if result.failed_merges:
        lines.append(f"  Failed merges:            {result.failed_merges:>6,}")

    for group in result.duplicate_groups:
        names = group.duplicate_names[:MAX_NAMES_SHOWN]
        more = len(group.duplicate_names) - len(names)
        shown = " | ".join(names) + (f" (+{more} more)" if more else "")
        lines.append(
            f"    [{group.confidence:.0%}] #{group.primary_id} {group.primary_name}  <=  {shown}"
        )

    for stats in result.merged_groups:
        lines.append(f"    {format_merge(stats)}")

    if dry_run and result.duplicate_groups:
        lines.append("  Dry run: no changes were made")

    return "\n".join(lines)


def format_pair(
    score: PairScore,
    token_set: Optional[float] = None,
    levenshtein_ratio: Optional[float] = None,
) -> str:
    """Breakdown of one key comparison, for the explain command."""
    lines = [
        f"  Base key:       {score.base}",
        f"  Variant key:    {score.variant}",
        f"  Edit distance:  {score.edit_distance}",
        f"  Jaro-Winkler:   {score.similarity:.4f}",
    ]
    if levenshtein_ratio is not None:
        lines.append(f"  Levenshtein:    {levenshtein_ratio:.4f}")
    if token_set is not None:
        lines.append(f"  Token set:      {token_set:.4f}")
    lines.extend([
        f"  Pattern:        {score.pattern.value}",
        f"  Confidence:     {score.confidence:.4f}",
    ])
    return "\n".join(lines)


def generate_report(
    results: Iterable[DeduplicationResult],
    output_path: Optional[Path] = None,
) -> str:
    """
    Build a markdown report of duplicate groups and merges.

    Writes it to output_path when given; returns the report text.
    """
    results = list(results)
    lines = [
        "# Catalog Duplicate Report",
        "",
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "## Summary",
        "",
        "| Kind | Entities | Groups | Merged | Skipped | Failed |",
        "|------|----------|--------|--------|---------|--------|",
    ]
    for result in results:
        lines.append(
            f"| {result.entity_kind.plural} | {result.total_entities:,} | "
            f"{len(result.duplicate_groups):,} | {len(result.merged_groups):,} | "
            f"{result.skipped_low_confidence:,} | {result.failed_merges:,} |"
        )

    for result in results:
        if not result.duplicate_groups:
            continue

        lines.extend(["", f"## {result.entity_kind.plural.title()}", ""])
        for group in result.duplicate_groups:
            lines.append(f"### #{group.primary_id} {group.primary_name} ({group.confidence:.0%})")
            lines.append("")
            for dup_id, dup_name in zip(group.duplicate_ids, group.duplicate_names):
                lines.append(f"- #{dup_id} {dup_name}")
            lines.append("")

    report = "\n".join(lines)

    if output_path is not None:
        Path(output_path).write_text(report, encoding="utf-8")

    return report

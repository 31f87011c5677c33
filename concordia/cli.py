"""
Concordia command line.

Usage:
    concordia dedupe person --library catalog.db
    concordia dedupe all --library catalog.db --auto-merge --merge-threshold 0.92
    concordia merge person 1 2 3 4 --library catalog.db
    concordia explain "King, Stephen" "Stephen Edwin King" --person

Without --auto-merge a dedupe run only reports; --dry-run always wins.
"""

import argparse
import sqlite3
import sys
from pathlib import Path
from typing import Optional

import structlog

from .clustering import ClusteringEngine
from .config import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_FREQUENCY,
    DeduplicationConfig,
    MergeIntent,
    Settings,
    load_settings,
)
from .deduplication import deduplicate
from .errors import ConcordiaError
from .logging_config import configure
from .merge import merge_entities
from .names import parse_name
from .normalizer import LabelNormalizer
from .records import EntityKind
from .report import BANNER, format_merge, format_pair, format_summary, generate_report
from .similarity import SimilarityMetrics
from .storage import CatalogStorage

logger = structlog.get_logger("concordia.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2

KIND_CHOICES = [kind.value for kind in EntityKind]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concordia",
        description="Find and merge duplicate entities in a library catalog",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: CONCORDIA_LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    dedupe = sub.add_parser("dedupe", help="Detect (and optionally merge) duplicates")
    dedupe.add_argument("kind", choices=KIND_CHOICES + ["all"], help="Entity kind to process")
    dedupe.add_argument("--library", type=Path, help="Catalog database (default: CONCORDIA_DATABASE)")
    dedupe.add_argument(
        "--threshold",
        type=float,
        default=DEFAULT_MIN_CONFIDENCE,
        help=f"Minimum pair confidence (default: {DEFAULT_MIN_CONFIDENCE})",
    )
    dedupe.add_argument(
        "--min-frequency",
        type=int,
        default=DEFAULT_MIN_FREQUENCY,
        help=f"Candidates of a pattern type needed to trust it (default: {DEFAULT_MIN_FREQUENCY})",
    )
    dedupe.add_argument("--auto-merge", action="store_true", help="Merge confident groups")
    dedupe.add_argument("--dry-run", action="store_true", help="Never modify the catalog")
    dedupe.add_argument(
        "--force",
        action="store_true",
        help="With --auto-merge, merge every group regardless of its confidence",
    )
    dedupe.add_argument(
        "--merge-threshold",
        type=float,
        default=None,
        help="Group confidence required to auto-merge (default: --threshold)",
    )
    dedupe.add_argument("--report", type=Path, default=None, help="Also write a markdown report here")

    merge = sub.add_parser("merge", help="Merge explicit duplicates into a primary")
    merge.add_argument("kind", choices=KIND_CHOICES, help="Entity kind")
    merge.add_argument("primary", type=int, help="Id of the entity to keep")
    merge.add_argument("duplicates", type=int, nargs="+", help="Ids to fold into the primary")
    merge.add_argument("--library", type=Path, help="Catalog database (default: CONCORDIA_DATABASE)")

    explain = sub.add_parser("explain", help="Show how two labels compare")
    explain.add_argument("first")
    explain.add_argument("second")
    explain.add_argument("--person", action="store_true", help="Parse both labels as person names")

    return parser


def _intent_from_args(args: argparse.Namespace) -> MergeIntent:
    if args.dry_run or not args.auto_merge:
        return MergeIntent.REPORT_ONLY
    if args.force:
        return MergeIntent.FORCE_MERGE
    return MergeIntent.MERGE_IF_CONFIDENT


def _resolve_library(args: argparse.Namespace, settings: Settings) -> Path:
    path = args.library or settings.database_path
    if path is None:
        raise FileNotFoundError("No catalog given: pass --library or set CONCORDIA_DATABASE")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")
    return path


def cmd_dedupe(args: argparse.Namespace, settings: Settings) -> int:
    if args.force and not args.auto_merge:
        print("ERROR: --force requires --auto-merge", file=sys.stderr)
        return EXIT_USAGE

    config = DeduplicationConfig(
        min_confidence=args.threshold,
        min_frequency=args.min_frequency,
        intent=_intent_from_args(args),
        merge_threshold=args.merge_threshold,
    )
    library = _resolve_library(args, settings)
    kinds = list(EntityKind) if args.kind == "all" else [EntityKind(args.kind)]

    print(BANNER)
    print("Concordia: Catalog Duplicate Detection")
    print(BANNER)
    print(f"\nCatalog: {library}")
    print(f"Minimum confidence: {config.min_confidence}")
    print(f"Minimum pattern frequency: {config.min_frequency}")
    print(f"Mode: {config.intent.value}")

    results = []
    with CatalogStorage.open(library, settings.db_timeout) as storage:
        for kind in kinds:
            result = deduplicate(storage, kind, config, max_batch_size=settings.max_batch_size)
            results.append(result)
            print()
            print(format_summary(result, dry_run=config.dry_run))

    if args.report:
        generate_report(results, args.report)
        print(f"\nReport written to {args.report}")

    print("\n" + BANNER)
    return EXIT_ERROR if any(r.failed_merges for r in results) else EXIT_OK


def cmd_merge(args: argparse.Namespace, settings: Settings) -> int:
    library = _resolve_library(args, settings)
    with CatalogStorage.open(library, settings.db_timeout) as storage:
        stats = merge_entities(storage, EntityKind(args.kind), args.primary, args.duplicates)
    print(format_merge(stats))
    return EXIT_OK


def cmd_explain(args: argparse.Namespace, settings: Settings) -> int:
    normalizer = LabelNormalizer()
    if args.person:
        names = [parse_name(args.first), parse_name(args.second)]
        for label, name in zip((args.first, args.second), names):
            print(f"  {label!r} parsed as {name.display_name()!r} (confidence {name.confidence:.1f})")
        first, second = (name.to_normalized_key(normalizer) for name in names)
    else:
        first = normalizer.normalize(args.first)
        second = normalizer.normalize(args.second)

    metrics = SimilarityMetrics()
    score = ClusteringEngine().score_pair(first, second)
    print(format_pair(
        score,
        token_set=metrics.token_set(first, second),
        levenshtein_ratio=metrics.levenshtein_ratio(first, second),
    ))

    shared = sorted(set(normalizer.tokens(first)) & set(normalizer.tokens(second)))
    print(f"  Shared tokens:  {', '.join(shared) or '-'}")
    if first != second and normalizer.normalize_compact(first) == normalizer.normalize_compact(second):
        print("  Keys differ only in spacing")
    return EXIT_OK


COMMANDS = {
    "dedupe": cmd_dedupe,
    "merge": cmd_merge,
    "explain": cmd_explain,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
        configure(args.log_level or settings.log_level)
        return COMMANDS[args.command](args, settings)
    except FileNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    except ConcordiaError as e:
        print(f"ERROR [{e.error_code}]: {e.message}", file=sys.stderr)
        return EXIT_ERROR
    except sqlite3.Error as e:
        logger.error("storage_error", error=str(e))
        print(f"ERROR: storage failure: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())

"""Command-line entry point: ``adoc-sync``."""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .bootstrap import RunContext, load_context
from .config_loader import ensure_config
from .errors import (
    ChangeDetectionError,
    ConfigurationMissing,
    PreflightError,
    TranslationServiceError,
)
from .file_handler import read_page, write_file
from .logger import setup_logging
from .pages import (
    PagePair,
    ensure_primary_lang,
    read_primary_lang,
    run_preflight,
)
from .structure import align_structure, copy_literal_blocks, validate_structure
from .sync.classifier import classify_change
from .sync.diffparse import unified_diff
from .sync.orchestrator import OrchestratorSettings, SyncOrchestrator
from .sync.reporter import (
    format_dry_run_preview,
    format_run_report,
    format_usage,
    format_usage_breakdown,
    format_validation_report,
    report_to_json,
)
from .sync.vcs import GitChangeSource
from .translation.prompts import Direction, TranslationMode
from .validators import validate_content

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def _print_config_missing(exc: ConfigurationMissing) -> None:
    print("", file=sys.stderr)
    print(f"ERROR: {exc}", file=sys.stderr)
    print("", file=sys.stderr)
    print("Fix:", file=sys.stderr)
    print("  1) Create .env from template: cp .env.example .env", file=sys.stderr)
    print("  2) Set OPENAI_API_KEY and OPENAI_MODEL_DEFAULT", file=sys.stderr)
    print("Then re-run the command.", file=sys.stderr)


def _apply_config_logging(args: argparse.Namespace, ctx: RunContext) -> None:
    """Re-apply logging when the config file sets what the CLI left unset."""
    section = ctx.config.logging
    if args.log_file or args.log_format or section.file or section.format != "text":
        setup_logging(
            debug=args.debug,
            log_file=args.log_file or section.file,
            log_format=args.log_format or section.format,
            level=section.level,
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _select_primaries(ctx: RunContext, staged: list[str]) -> list[PagePair]:
    mapper = ctx.mapper()
    pairs: list[PagePair] = []
    for path in staged:
        pair = mapper.pair_for(path)
        if pair is None:
            continue
        declared = (
            read_primary_lang(read_page(pair.primary_path))
            if pair.primary_path.is_file()
            else None
        )
        if declared and declared != pair.primary_lang:
            logger.warning(
                "Skipping %s: declares :primary-lang: %s", path, declared
            )
            continue
        pairs.append(pair)
    return pairs


def cmd_run(args: argparse.Namespace) -> int:
    source = GitChangeSource.discover(Path.cwd())
    ctx = load_context(source.repo_root, {"policy": args.mode})
    _apply_config_logging(args, ctx)
    mapper = ctx.mapper()
    policy = ctx.translator_config.policy

    try:
        staged = source.staged_files()
        if ctx.config.preflight.add_missing_markers and not args.dry_run:
            for path in ensure_primary_lang(mapper, staged):
                if not args.no_stage:
                    source.stage(mapper.repo_root / path)
        run_preflight(mapper, staged, ctx.config.preflight)
        pairs = _select_primaries(ctx, staged)
    except PreflightError as exc:
        print(f"{exc}:")
        for problem in exc.problems:
            print(f"  - {problem}")
        return EXIT_FAILURE
    except ChangeDetectionError as exc:
        logger.error("Cannot read staged changes: %s", exc)
        return EXIT_FAILURE

    if not pairs:
        print("No staged primary pages.")
        return EXIT_OK

    logger.info("Checking %d staged page(s) (TRANSLATION_MODE=%s)", len(pairs), policy)
    ledger = ctx.ledger
    usage_before = ledger.totals()

    orchestrator = SyncOrchestrator(
        ctx.translator(),
        source,
        OrchestratorSettings.from_config(ctx.config, policy),
    )
    try:
        report = orchestrator.run(pairs, dry_run=args.dry_run)
    except ConfigurationMissing as exc:
        _print_config_missing(exc)
        return EXIT_FAILURE
    except ChangeDetectionError as exc:
        logger.error("Cannot read staged changes: %s", exc)
        return EXIT_FAILURE

    if not args.dry_run and not args.no_stage:
        for decision in report.written:
            source.stage(Path(decision.secondary_path))

    if args.json:
        print(json.dumps(report_to_json(report), indent=2, ensure_ascii=False))
        return EXIT_OK if report.passed else EXIT_FAILURE
    if args.dry_run:
        print(format_dry_run_preview(report))
        return EXIT_OK

    print(format_run_report(report))
    usage_after = ledger.totals()
    print(format_usage(usage_after - usage_before, "Token usage (this run)"))
    print(format_usage(usage_after, "Token usage (cumulative)"))
    return EXIT_OK if report.passed else EXIT_FAILURE


def cmd_classify(args: argparse.Namespace) -> int:
    path = Path(args.file)
    try:
        if args.base:
            staged = read_page(path)
            diff = unified_diff(read_page(Path(args.base)), staged)
        else:
            source = GitChangeSource.discover(path.parent.resolve())
            staged = source.content(path.resolve())
            diff = source.diff(path.resolve())
    except (ChangeDetectionError, OSError) as exc:
        logger.error("Cannot read change for %s: %s", path, exc)
        return EXIT_FAILURE

    verdict = classify_change(
        staged, diff, detect_code_only=args.detect_code_only
    )
    print(f"STATUS={verdict.value}")
    return EXIT_OK


def _deterministic(args: argparse.Namespace, strategy) -> int:
    primary_path = Path(args.primary)
    secondary_path = Path(args.secondary)
    primary = read_page(primary_path)
    secondary = read_page(secondary_path)

    result = strategy(primary, secondary)
    for warning in result.warnings:
        logger.warning("%s: %s", secondary_path, warning)
    if result.changed:
        write_file(secondary_path, result.text)
        print(f"Updated {len(result.changed_lines)} line(s) in {secondary_path}")
    else:
        print(f"{secondary_path} already in sync")

    report = validate_structure(primary, result.text)
    print(format_validation_report(report))
    return EXIT_OK if report.passed else EXIT_FAILURE


def cmd_sync_structure(args: argparse.Namespace) -> int:
    return _deterministic(args, align_structure)


def cmd_sync_code(args: argparse.Namespace) -> int:
    return _deterministic(args, copy_literal_blocks)


def cmd_validate(args: argparse.Namespace) -> int:
    report = validate_structure(
        read_page(Path(args.primary)), read_page(Path(args.secondary))
    )
    if args.json:
        payload = report.model_dump(mode="json")
        payload["passed"] = report.passed
        payload["problems"] = report.describe()
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_validation_report(report, f"{args.primary} vs {args.secondary}"))
    return EXIT_OK if report.passed else EXIT_FAILURE


def cmd_translate(args: argparse.Namespace) -> int:
    try:
        direction = Direction.parse(args.direction)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    ctx = load_context(Path.cwd(), {"model": args.model})
    _apply_config_logging(args, ctx)
    text = read_page(Path(args.input))
    ok, reason = validate_content(text)
    if not ok:
        print(f"ERROR: {reason}", file=sys.stderr)
        return EXIT_FAILURE

    mode = TranslationMode.STRICT if args.strict else TranslationMode.NORMAL
    try:
        translated = ctx.translator(script="translate").translate(
            text, mode, direction
        )
    except ConfigurationMissing as exc:
        _print_config_missing(exc)
        return EXIT_FAILURE
    except TranslationServiceError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    if args.output:
        write_file(Path(args.output), translated)
        print(f"Translated ({direction}, {mode.value}) -> {args.output}")
    else:
        sys.stdout.write(translated)
    return EXIT_OK


def cmd_usage(args: argparse.Namespace) -> int:
    ctx = load_context(Path.cwd())
    ledger = ctx.ledger
    print(f"Ledger: {ledger.path}")
    print(format_usage(ledger.totals(), "Token usage (cumulative)"))
    print(format_usage_breakdown(ledger.breakdown("script"), "By script"))
    print(format_usage_breakdown(ledger.breakdown("model"), "By model"))
    return EXIT_OK


def cmd_init_config(args: argparse.Namespace) -> int:
    target = Path(args.path) if args.path else None
    path, created = ensure_config(target)
    if created:
        print(f"Created starter config: {path}")
    else:
        print(f"Config already exists: {path}")
    return EXIT_OK


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adoc-sync",
        description="adoc-sync - keep bilingual AsciiDoc page trees structurally in sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Commit-time run over staged pages (e.g. from a pre-commit hook)
  adoc-sync run

  # Preview what would happen, without translating or writing
  adoc-sync run --dry-run

  # Classify one staged page
  adoc-sync classify docs-en/modules/ROOT/pages/index.adoc

  # Check a pair of pages
  adoc-sync validate docs-en/modules/ROOT/pages/index.adoc docs-sr/modules/ROOT/pages/index.adoc

  # Translate a single file
  adoc-sync translate in.adoc out.adoc --direction en-sr --strict

Credentials are read from OPENAI_API_KEY and OPENAI_MODEL_DEFAULT (or .env).
        """,
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"adoc-sync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("run", help="Synchronize staged primary pages")
    p.add_argument(
        "--mode",
        choices=["normal", "strict", "off"],
        help="Translation policy (overrides TRANSLATION_MODE)",
    )
    p.add_argument(
        "--dry-run", action="store_true", help="Classify and plan only"
    )
    p.add_argument(
        "--no-stage",
        action="store_true",
        help="Do not 'git add' rewritten counterpart pages",
    )
    p.add_argument("--json", action="store_true", help="Machine-readable output")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("classify", help="Classify the change to one page")
    p.add_argument("file", help="Primary page")
    p.add_argument(
        "--base",
        help="Previous version to diff against (default: git index vs HEAD)",
    )
    p.add_argument(
        "--detect-code-only",
        action="store_true",
        help="Report CODE_ONLY for changes confined to code blocks",
    )
    p.set_defaults(func=cmd_classify)

    for name, func, help_text in (
        ("sync-structure", cmd_sync_structure, "Copy heading/list markers"),
        ("sync-code", cmd_sync_code, "Copy code and literal blocks"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("primary")
        p.add_argument("secondary")
        p.set_defaults(func=func)

    p = sub.add_parser("validate", help="Compare the structure of two pages")
    p.add_argument("primary")
    p.add_argument("secondary")
    p.add_argument("--json", action="store_true", help="Machine-readable output")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("translate", help="Translate one file")
    p.add_argument("input")
    p.add_argument("output", nargs="?", help="Output file (default: stdout)")
    p.add_argument("--strict", action="store_true", help="Use SAFE MODE")
    p.add_argument("--direction", default="en-sr", help="e.g. en-sr or sr-en")
    p.add_argument("--model", help="Override the configured model")
    p.set_defaults(func=cmd_translate)

    p = sub.add_parser("usage", help="Show token usage from the ledger")
    p.set_defaults(func=cmd_usage)

    p = sub.add_parser("init-config", help="Create a starter config file")
    p.add_argument("--path", help="Where to write it")
    p.set_defaults(func=cmd_init_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse *argv* and run the selected command; returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        debug=args.debug,
        log_file=args.log_file,
        log_format=args.log_format or "text",
    )

    try:
        return args.func(args)
    except ValueError as exc:
        print(f"ERROR: Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()

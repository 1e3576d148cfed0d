from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from resource_forge.config.loader import ConfigError, ForgeConfig, load_config, resolve_config_path
from resource_forge.excel.reader import DecodeError, read_rows
from resource_forge.logging.init import log_diagnostics, log_summary, setup_logging
from resource_forge.models.diagnostic import EntityKind
from resource_forge.normalize.headers import reconcile_headers
from resource_forge.services.export import ExportBlockedError
from resource_forge.services.pipeline import PipelineError, export_result, run_pipeline
from resource_forge.services.rules import RuleBook, RuleValidationError, suggest_rule
from resource_forge.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, then the YAML config
- Decode, normalize and validate the configured datasets
- Print diagnostics and the SUMMARY line
- Optionally export canonical CSVs + rules JSON (gated on validation errors)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_ISSUES = 2  # validation errors, decode failures or blocked export


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env via python-dotenv; environment values win unless override=True."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Normalize and validate client / worker / task spreadsheets")
    p.add_argument("--config", help="Path to YAML config (default: config/forge.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, column mapping & first rows then exit")
    p.add_argument("--export", action="store_true", help="Export canonical CSVs and rules JSON")
    p.add_argument(
        "--skip-export-validation",
        action="store_true",
        help="Export even when validation errors exist",
    )
    p.add_argument(
        "--suggest-rule",
        action="append",
        default=[],
        metavar="TEXT",
        help="Describe a rule in plain text; a matching suggestion is added to the rule book",
    )
    return p.parse_args(argv)


def _inspect_data(cfg: ForgeConfig) -> int:
    code = EXIT_SUCCESS
    for kind in EntityKind:
        path = cfg.inputs.get(kind.dataset)
        if path is None:
            print(f"{kind.dataset.upper()}: not configured")
            continue
        print(f"{kind.dataset.upper()}: {path}")
        try:
            dataset = read_rows(path, keep_na_strings=cfg.keep_na_strings)
        except DecodeError as e:
            print(f"  read_error: {e}")
            code = EXIT_ISSUES
            continue
        mapping = reconcile_headers(dataset.columns, kind)
        print(f"  cols={dataset.columns}")
        print(f"  mapping={mapping.mapping}")
        print(f"  unknown={mapping.unknown_columns}")
        print("    sample_rows=", dataset.rows[:3])
    return code


def _build_rule_book(cfg: ForgeConfig, suggestions: list[str], logger) -> RuleBook:
    book = RuleBook.from_dicts(cfg.rules)
    for text in suggestions:
        suggestion = suggest_rule(text)
        if suggestion is None:
            logger.warning(f"rules: no suggestion for {text!r}")
            continue
        book.accept(suggestion)
    return book


def main(argv: list[str] | None = None) -> int:
    # argv=[] (テストからの呼び出し) で sys.argv が混入しないよう None のときだけ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    try:
        rule_book = _build_rule_book(cfg, args.suggest_rule, logger)
    except RuleValidationError as e:
        logger.error(f"rules: {e}")
        return EXIT_FATAL

    try:
        result = run_pipeline(cfg)
    except PipelineError as e:
        logger.error(f"pipeline: {e}")
        return EXIT_FATAL

    log_diagnostics(result.all_diagnostics)
    logger.info(
        f"clients={len(result.clients)} workers={len(result.workers)} "
        f"tasks={len(result.tasks)} rules={len(rule_book)}"
    )
    for label, rows in result.invalid_rows_by_label().items():
        logger.info(f"{label}: rows with errors {rows}")

    summary_line = render_summary_line(result.report.summary)
    # log_summary が "SUMMARY " を付けるので除去
    log_summary(summary_line[len("SUMMARY "):])

    if args.export:
        try:
            export_result(
                result,
                rule_book,
                cfg.output_directory,
                validate_before_export=cfg.validate_before_export and not args.skip_export_validation,
                clean=cfg.clean_export,
            )
        except ExportBlockedError as e:
            logger.error(f"export: {e}")
            return EXIT_ISSUES

    if result.error_count > 0 or result.decode_failures:
        return EXIT_ISSUES
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

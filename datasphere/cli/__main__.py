from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from datasphere.config.loader import ConfigError, default_config, load_config, resolve_config_path
from datasphere.ingest.reader import SourceError, read_source
from datasphere.logging.init import log_summary, set_level, setup_logging
from datasphere.models.aggregation import TOTAL_COLUMN, Aggregation, FilterSpec, SummaryRequest
from datasphere.services.chart_data import ChartType, prepare_chart_series
from datasphere.services.custom_summary import generate_custom_summary
from datasphere.services.errors import EngineError
from datasphere.services.export import export_workbook
from datasphere.services.layout import column_stats_rows, pivot_table_rows, render_stats_line
from datasphere.services.pivot import generate_pivot
from datasphere.services.statistics import calculate_column_stats

"""CLI entrypoint.

Flow:
- Load .env (DATASPHERE_CONFIG may point at a config file) and the config
- Read and normalize one CSV / Excel file
- Print column statistics, a pivot / custom summary grid and chart series
  as requested, optionally export a workbook
- Emit a SUMMARY line; exit 0 on success, 1 on any fatal error
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env via python-dotenv; failures only warn."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        logging.getLogger("datasphere").warning(f"failed to load .env: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="datasphere",
        description="Column statistics, pivots and custom summaries for CSV / Excel files",
    )
    p.add_argument("file", type=Path, help="CSV or Excel file")
    p.add_argument("--sheet", help="Sheet name (Excel only, falls back to the first sheet)")
    p.add_argument("--config", help="Config YAML (default: $DATASPHERE_CONFIG or config/analysis.yml)")
    p.add_argument("--stats", action="store_true", help="Print column statistics")
    p.add_argument("--rows", help="Row grouping field")
    p.add_argument("--columns", help=f"Column grouping field (omit or {TOTAL_COLUMN} for a single total column)")
    p.add_argument("--values", help="Value field")
    p.add_argument(
        "--agg",
        default=Aggregation.SUM.value,
        choices=[a.value for a in Aggregation],
        help="Aggregation (default: sum)",
    )
    p.add_argument("--pivot", action="store_true", help="Use the plain pivot aggregator (sum/avg/count/min/max)")
    p.add_argument(
        "--filter",
        action="append",
        default=[],
        type=FilterSpec.parse,
        metavar="COLUMN=VALUE",
        help="Equality filter, may be given twice",
    )
    p.add_argument("--chart", nargs=3, metavar=("TYPE", "X", "Y"), help="Print chart series")
    p.add_argument("--export", type=Path, help="Write an .xlsx workbook")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _fmt(value: Any) -> str:
    # 表示のみ小数 2 桁に丸める (エンジン側は丸めない)
    if isinstance(value, bool) or value is None:
        return "" if value is None else str(value).lower()
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:,.2f}".rstrip("0").rstrip(".")
    return str(value)


def _print_table(rows: Sequence[Sequence[Any]]) -> None:
    if not rows:
        return
    cells = [[_fmt(v) for v in r] for r in rows]
    widths = [max(len(r[i]) for r in cells if i < len(r)) for i in range(max(len(r) for r in cells))]
    for r in cells:
        print("  ".join(v.ljust(widths[i]) for i, v in enumerate(r)).rstrip())


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        config_path = resolve_config_path(args.config)
        cfg = load_config(config_path) if config_path is not None else default_config()
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        dataset = read_source(args.file, sheet_name=args.sheet, config=cfg)
    except FileNotFoundError:
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL
    except SourceError as e:
        logger.error(f"source: {e}")
        return EXIT_FATAL
    except OSError as e:
        logger.error(f"cannot read {args.file}: {e}")
        return EXIT_FATAL

    if dataset.sheet_name is not None:
        logger.info(f"sheet={dataset.sheet_name} available={list(dataset.sheet_names)}")

    stats = calculate_column_stats(
        dataset,
        numeric_threshold=cfg.numeric_threshold,
        date_year_bounds=cfg.date_year_bounds,
    )
    summary = None
    try:
        if args.stats or not (args.rows or args.chart):
            records = column_stats_rows(stats)
            if records:
                header = list(records[0].keys())
                _print_table([header] + [list(r.values()) for r in records])

        if args.rows or args.values:
            if not (args.rows and args.values):
                logger.error("--rows and --values must be given together")
                return EXIT_FATAL
            columns = None if args.columns in (None, "", TOTAL_COLUMN) else args.columns
            if args.pivot:
                if columns is None:
                    logger.error("--pivot requires --columns")
                    return EXIT_FATAL
                summary = generate_pivot(dataset, args.rows, columns, args.values, args.agg, filters=args.filter)
                _print_table(pivot_table_rows(summary, row_label=args.rows, placeholder=cfg.placeholder))
            else:
                request = SummaryRequest(
                    rows_field=args.rows,
                    columns_field=columns,
                    values_field=args.values,
                    aggregation=args.agg,
                    filters=tuple(args.filter),
                )
                summary = generate_custom_summary(dataset, request, totals_mode=cfg.totals_mode)
                print(summary.title)
                _print_table(pivot_table_rows(summary, placeholder=cfg.placeholder))

        if args.chart:
            chart_type, x_field, y_field = args.chart
            series = prepare_chart_series(dataset, x_field, y_field, ChartType(chart_type), filters=args.filter)
            if series.chart_type is ChartType.SCATTER:
                _print_table([[x, y] for x, y in series.points])
            else:
                _print_table(list(zip(series.labels, series.values)))
    except EngineError as e:
        logger.error(f"analysis: {e}")
        return EXIT_FATAL
    except ValueError as e:
        logger.error(f"arguments: {e}")
        return EXIT_FATAL

    if args.export:
        try:
            export_workbook(
                args.export, dataset, stats, summary, row_label=args.rows, placeholder=cfg.placeholder
            )
        except OSError as e:
            logger.error(f"export: {e}")
            return EXIT_FATAL
        logger.info(f"exported: {args.export}")

    log_summary(render_stats_line(len(dataset.rows), stats)[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd
from dotenv import load_dotenv

from sheetweaver import api
from sheetweaver.config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_config, load_config
from sheetweaver.errors import InputFormatError, SheetweaverError
from sheetweaver.excel.reader import read_dataset
from sheetweaver.logging.init import get_logger, log_summary, setup_logging
from sheetweaver.logging.issue_log import IssueLogBuffer
from sheetweaver.models.config_models import AppConfig
from sheetweaver.models.dataset import TabularDataset
from sheetweaver.models.merge_result import NO_MATCH
from sheetweaver.models.results import ErrorResult
from sheetweaver.services import convert, dates, duplicates, export, matching, reports, summary, undo_store
from sheetweaver.sheets.backend import SheetBackend, SheetRef, open_backend, parse_spreadsheet_id

"""CLI entrypoint.

Sub-commands: scan, merge, convert, format-dates, verify, preview, update,
import, undo, report. Exit codes: 0 success, 1 fatal (config / input /
backend), 2 partial (scan finished but some sheets or files were skipped).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; values win over the inherited environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetweaver", description="Spreadsheet reconciliation tools")
    p.add_argument("--config", type=Path, default=None, help=f"config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("scan", help="find duplicate NIS/NISN and empty fields across workbooks")
    s.add_argument("paths", nargs="+", type=Path, help="workbook files or directories")

    m = sub.add_parser("merge", help="merge two tables by student name")
    m.add_argument("source", type=Path)
    m.add_argument("target", type=Path)
    m.add_argument(
        "--mode", required=True,
        help="field to fill: nisn, nis, year or a mode added under merge.mode_aliases",
    )
    m.add_argument("--auto-recommend", action="store_true", help="list name-distance recommendations")
    m.add_argument(
        "--accept-distance", type=int, default=None,
        help="with --auto-recommend, confirm pairs at or below this distance",
    )
    m.add_argument("--out", type=Path, default=None, help="write the final rows to this .xlsx")

    c = sub.add_parser("convert", help="convert a ticket export (json/csv)")
    c.add_argument("input", type=Path)
    c.add_argument("--out", type=Path, default=None, help=".xlsx or .csv output")

    f = sub.add_parser("format-dates", help="rewrite the Tanggal Lahir column as DD/MM/YYYY")
    f.add_argument("input", type=Path, help="student workbook")
    f.add_argument("--out", type=Path, default=None, help=".xlsx or .csv output (default: csv to stdout)")

    sub.add_parser("verify", help="check access to the configured spreadsheet")

    for name, text in (
        ("preview", "show the changes an update would make"),
        ("update", "write status / ticket / resolution changes"),
        ("import", "append new cases to the sheet"),
    ):
        sp = sub.add_parser(name, help=text)
        sp.add_argument("input", type=Path, help="ticket export (json/csv)")

    sub.add_parser("undo", help="revert the last update or import")

    r = sub.add_parser("report", help="daily or L3 report text")
    r.add_argument("kind", choices=["daily", "l3"])
    r.add_argument("input", type=Path, nargs="?", help="ticket export (daily report)")
    return p.parse_args(argv)


def _load_cfg(path: Path | None) -> AppConfig:
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return default_config()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def _load_tickets(path: Path, cfg: AppConfig) -> TabularDataset:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return convert.read_csv_tickets(path)
    if suffix == ".json":
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise InputFormatError(f"cannot read {path}: {e}") from e
        return convert.convert_tickets(text, config=cfg.convert)
    raise InputFormatError(f"unsupported ticket export: {path.name} (expected .json or .csv)")


def _sheet(cfg: AppConfig) -> tuple[SheetBackend, SheetRef]:
    ref = SheetRef(parse_spreadsheet_id(cfg.spreadsheet.url), cfg.spreadsheet.sheet_name)
    return open_backend(cfg.spreadsheet.url, cfg.credentials), ref


def _fail(result: Any) -> bool:
    if isinstance(result, ErrorResult):
        get_logger().error(result.error)
        return True
    return False


def _cmd_scan(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = get_logger()
    issue_log = IssueLogBuffer()
    paths = duplicates.collect_workbook_paths(args.paths)
    result = duplicates.scan_files(paths, issue_log)

    for label, records in (
        ("DUPLICATE", result.duplicates),
        ("EMPTY_ID", result.empty_id),
        ("EMPTY_DOB", result.empty_dob),
    ):
        for r in records:
            logger.info(
                f"{label} {r.kind.value} id={r.id} name={r.name} "
                f"file={r.source_file} sheet={r.source_sheet} row={r.row}"
            )
    log_path = issue_log.flush()
    if log_path is not None:
        logger.info(f"issue log: {log_path}")
    log_summary(summary.render_scan_summary(result)[len(summary.SUMMARY_PREFIX):])
    if result.rejected or result.unreadable_files:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _cmd_merge(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = get_logger()
    source = read_dataset(args.source)
    target = read_dataset(args.target)
    result = api.merge(source, target, args.mode, cfg.merge)
    if _fail(result):
        return EXIT_FATAL

    pools = matching.MatchPools.from_merge(result)
    if args.auto_recommend:
        recs = matching.recommend_matches(
            pools.source, pools.target, pools.source_headers, pools.target_headers, cfg.merge.name_aliases
        )
        for rec in recs:
            src = matching.row_name(rec.source, source.headers) if rec.source else "-"
            tgt = matching.row_name(rec.target, target.headers) if rec.target else "-"
            dist = "no match" if rec.distance == NO_MATCH else str(rec.distance)
            logger.info(f"RECOMMEND {src} <-> {tgt} ({dist})")
            if (
                args.accept_distance is not None
                and rec.is_pair
                and rec.distance <= args.accept_distance
            ):
                pools, _ = matching.confirm_match(pools, rec.source, rec.target)

    rows = export.final_rows(result, pools.matched)
    if args.out is not None:
        projected = export.project_result_rows(rows, args.mode, target.headers, source.headers, cfg.merge)
        if projected:
            out = export.write_rows_xlsx(projected, args.mode, args.out, cfg.merge)
            logger.info(f"wrote {len(projected)} row(s) to {out}")
        else:
            logger.warning("no matched rows to write")
    log_summary(
        summary.render_merge_summary(result.summary, len(pools.target))[len(summary.SUMMARY_PREFIX):]
        + f" manual={len(pools.matched)}"
    )
    return EXIT_SUCCESS_ALL


def _write_frame(frame: pd.DataFrame, out: Path | None) -> None:
    if out is None:
        sys.stdout.write(frame.to_csv(index=False))
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    if out.suffix.lower() == ".csv":
        frame.to_csv(out, index=False)
    else:
        frame.to_excel(out, index=False, engine="openpyxl")
    get_logger().info(f"wrote {len(frame)} row(s) to {out}")


def _cmd_convert(args: argparse.Namespace, cfg: AppConfig) -> int:
    dataset = _load_tickets(args.input, cfg)
    _write_frame(pd.DataFrame(dataset.rows, columns=dataset.headers), args.out)
    return EXIT_SUCCESS_ALL


def _cmd_format_dates(args: argparse.Namespace, cfg: AppConfig) -> int:
    dataset, changed = dates.format_birth_dates(read_dataset(args.input))
    _write_frame(pd.DataFrame(dataset.rows, columns=dataset.headers), args.out)
    log_summary(f"rows={len(dataset)} formatted={changed}")
    return EXIT_SUCCESS_ALL


def _cmd_verify(args: argparse.Namespace, cfg: AppConfig) -> int:
    backend, ref = _sheet(cfg)
    info = api.verify_sheet(ref, backend)
    if _fail(info):
        return EXIT_FATAL
    get_logger().info(f"spreadsheet: {info.title}")
    return EXIT_SUCCESS_ALL


def _log_changes(changes: list[Any]) -> None:
    logger = get_logger()
    for c in changes:
        parts = []
        if c.status_changed:
            parts.append(f"status {c.old_status!r} -> {c.new_status!r}")
        if c.ticket_changed:
            parts.append(f"ticket {c.old_ticket_ref!r} -> {c.new_ticket_ref!r}")
        if c.resolution_changed:
            parts.append(f"resolved {c.old_resolution!r} -> {c.new_resolution!r}")
        logger.info(f"row {c.row_index} {c.title}: {', '.join(parts)}")


def _cmd_preview(args: argparse.Namespace, cfg: AppConfig) -> int:
    dataset = _load_tickets(args.input, cfg)
    backend, ref = _sheet(cfg)
    preview = api.preview_sheet_update(dataset.rows, ref, backend)
    if _fail(preview):
        return EXIT_FATAL
    _log_changes(preview.changes)
    for title in preview.unmatched_titles:
        get_logger().debug(f"not in sheet: {title}")
    log_summary(f"changes={len(preview.changes)} unmatched={len(preview.unmatched_titles)}")
    return EXIT_SUCCESS_ALL


def _cmd_update(args: argparse.Namespace, cfg: AppConfig) -> int:
    dataset = _load_tickets(args.input, cfg)
    backend, ref = _sheet(cfg)
    result = api.apply_sheet_update(dataset.rows, ref, backend)
    if _fail(result):
        return EXIT_FATAL
    _log_changes(result.changes)
    get_logger().info(result.message)
    if result.undo is not None:
        undo_store.save_undo(result.undo)
    log_summary(summary.render_update_summary(result)[len(summary.SUMMARY_PREFIX):])
    return EXIT_SUCCESS_ALL


def _cmd_import(args: argparse.Namespace, cfg: AppConfig) -> int:
    logger = get_logger()
    dataset = _load_tickets(args.input, cfg)
    backend, ref = _sheet(cfg)
    result = api.import_rows(dataset, ref, backend)
    if _fail(result):
        return EXIT_FATAL
    for title in result.duplicates:
        logger.info(f"already in sheet: {title}")
    logger.info(result.message)
    if result.undo is not None:
        undo_store.save_undo(result.undo)
    log_summary(summary.render_import_summary(result)[len(summary.SUMMARY_PREFIX):])
    return EXIT_SUCCESS_ALL


def _cmd_undo(args: argparse.Namespace, cfg: AppConfig) -> int:
    payload = undo_store.peek_undo()
    backend, ref = _sheet(cfg)
    result = api.undo(payload, ref, backend)
    if _fail(result):
        return EXIT_FATAL
    undo_store.discard_undo()
    get_logger().info(result.message)
    return EXIT_SUCCESS_ALL


def _cmd_report(args: argparse.Namespace, cfg: AppConfig) -> int:
    if args.kind == "daily":
        if args.input is None:
            raise InputFormatError("the daily report needs a ticket export")
        text = reports.daily_report(_load_tickets(args.input, cfg), date.today())
    else:
        backend, ref = _sheet(cfg)
        text = reports.fetch_l3_report(backend, ref)
    sys.stdout.write(text + "\n")
    return EXIT_SUCCESS_ALL


COMMANDS = {
    "scan": _cmd_scan,
    "merge": _cmd_merge,
    "convert": _cmd_convert,
    "format-dates": _cmd_format_dates,
    "verify": _cmd_verify,
    "preview": _cmd_preview,
    "update": _cmd_update,
    "import": _cmd_import,
    "undo": _cmd_undo,
    "report": _cmd_report,
}


def main(argv: list[str] | None = None) -> int:
    # only read sys.argv when no list is given; [] must stay empty under pytest
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_cfg(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        return COMMANDS[args.command](args, cfg)
    except SheetweaverError as e:
        logger.error(f"{args.command}: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

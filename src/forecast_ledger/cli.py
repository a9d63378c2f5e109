"""CLI entry point for forecast-ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from forecast_ledger import __version__
from forecast_ledger.artifacts import utcnow_iso, write_manifest, write_qc_report
from forecast_ledger.dates import DEFAULT_YEAR, DatePolicy
from forecast_ledger.errors import ForecastError
from forecast_ledger.export import write_csv
from forecast_ledger.headers import Blank, DateLike, classify_header
from forecast_ledger.io import load_grid
from forecast_ledger.models import ParsedTable, QCReport
from forecast_ledger.parser import parse_grid, parse_grid_multi
from forecast_ledger.report import write_workbook
from forecast_ledger.transform import (
    DEFAULT_CURRENCY,
    DEFAULT_PARENT_ID,
    transform_with_report,
)

app = typer.Typer(
    name="fledger",
    help="forecast-ledger: Turn forecast spreadsheets into ledger import rows.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

CSV_NAME = "transformed.csv"
XLSX_NAME = "transformed.xlsx"

PROFILE_KEYS = ("currency", "parent_id", "year", "dayfirst")
_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


class OutputFormat(str, Enum):
    csv = "csv"
    xlsx = "xlsx"
    both = "both"


@dataclass(frozen=True)
class Settings:
    currency: str
    parent_id: str
    policy: DatePolicy


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"forecast-ledger v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("forecast_ledger")
    if not verbose:
        return
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=console, show_path=False))
    package_logger.setLevel(logging.DEBUG)


def _parse_bool(value: str, key: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise ValueError(f"Profile value for {key!r} must be true/false, got {value!r}")


def _load_profile(profile: Path | None) -> dict[str, str]:
    """Return ``key=value`` settings from a profile file."""
    if not profile:
        return {}
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like currency=EUR)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    settings: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            raise ValueError(f"Invalid profile line: {stripped!r}  (expected key=value)")
        key, value = (part.strip() for part in stripped.split("=", 1))
        key = key.lower().replace("-", "_")
        if key not in PROFILE_KEYS:
            raise ValueError(
                f"Unknown profile key {key!r}. Use one of: {', '.join(PROFILE_KEYS)}"
            )
        settings[key] = value
    return settings


def _resolve_settings(
    profile: Path | None,
    *,
    currency: str | None,
    parent_id: str | None,
    year: int | None,
    dayfirst: bool | None,
) -> Settings:
    """Merge profile defaults with explicit options (options win)."""
    values = _load_profile(profile)

    if year is None and "year" in values:
        try:
            year = int(values["year"])
        except ValueError as exc:
            raise ValueError(
                f"Profile value for 'year' must be an integer: {values['year']!r}"
            ) from exc
    if dayfirst is None and "dayfirst" in values:
        dayfirst = _parse_bool(values["dayfirst"], "dayfirst")

    return Settings(
        currency=(currency or values.get("currency") or DEFAULT_CURRENCY).strip().upper(),
        parent_id=(parent_id or values.get("parent_id") or DEFAULT_PARENT_ID).strip(),
        policy=DatePolicy(
            default_year=DEFAULT_YEAR if year is None else year,
            dayfirst=bool(dayfirst),
        ),
    )


def _abort(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    *,
    message: str,
    rows_in: int = 0,
    error_code: int = 2,
) -> NoReturn:
    """Write failure artifacts, report *message*, and exit."""
    qc = QCReport(rows_in=rows_in, rows_out=0, skipped_rows=rows_in, warnings=[message])
    qc_path = write_qc_report(out_dir, qc)
    manifest_path = write_manifest(
        out_dir,
        input_file,
        created_at,
        qc,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  QC report -> {qc_path}")
    console.print(f"  Manifest  -> {manifest_path}")
    raise typer.Exit(code=error_code)


def _parse(grid: list[list[object]], *, multi: bool, policy: DatePolicy) -> ParsedTable:
    if multi:
        return parse_grid_multi(grid, policy)
    return parse_grid(grid, policy)


def _schema_table(table: ParsedTable, policy: DatePolicy) -> RichTable:
    schema = table.schema
    tbl = RichTable(title="Detected Columns", show_lines=False)
    tbl.add_column("#", justify="right")
    tbl.add_column("Header", style="bold")
    tbl.add_column("Role")
    tbl.add_column("Date(s)")

    labelled = [
        (schema.category_column, "category"),
        (schema.entity_column, "entity id"),
        (schema.currency_column, "currency"),
    ]
    for index, role in labelled:
        if index is not None:
            tbl.add_row(str(index), schema.headers[index], role, "")

    for index in range(schema.category_column + 1, len(schema.headers)):
        header = schema.headers[index]
        outcome = classify_header(header, policy)
        if isinstance(outcome, Blank):
            tbl.add_row(str(index), "", "[dim]gap[/dim]", "")
        elif isinstance(outcome, DateLike):
            role = "week range" if outcome.is_range else "date"
            if outcome.is_range:
                shown = f"{outcome.dates[0]} .. {outcome.dates[-1]}"
            else:
                shown = ", ".join(outcome.dates) or "[yellow]unresolved[/yellow]"
            tbl.add_row(str(index), header, f"[green]{role}[/green]", shown)
        else:
            tbl.add_row(str(index), header, "[yellow]stop[/yellow]", "")
            break
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """forecast-ledger CLI."""


# ── convert command ──────────────────────────────────────────────


@app.command()
def convert(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to CSV or XLSX forecast file.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for transformed files + QC + manifest.",
    ),
    currency: str | None = typer.Option(
        None, "--currency", "-c",
        help=f"Currency for every record (default {DEFAULT_CURRENCY}). Ignored with --multi.",
    ),
    parent_id: str | None = typer.Option(
        None, "--parent-id", "-p",
        help=f"Parent entity id for every record (default {DEFAULT_PARENT_ID}). Ignored with --multi.",
    ),
    multi: bool = typer.Option(
        False, "--multi",
        help="Read currency and entity id from per-row columns.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.both, "--format", "-f",
        help="Which transformed files to write: csv, xlsx, or both.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with key=value defaults (currency, parent_id, year, dayfirst).",
    ),
    dayfirst: bool | None = typer.Option(
        None,
        "--dayfirst/--monthfirst",
        help="Tie-break for ambiguous slash headers like 03/04/2025 (default month first).",
    ),
    year: int | None = typer.Option(
        None, "--year",
        help=f"Year for 'Mon D' headers (default {DEFAULT_YEAR}).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log header classification and skipped rows.",
    ),
) -> None:
    """Convert a forecast sheet into ledger import rows."""
    echo = _printer(quiet)
    _configure_logging(verbose)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        settings = _resolve_settings(
            profile, currency=currency, parent_id=parent_id, year=year, dayfirst=dayfirst
        )
    except ValueError as exc:
        _abort(out_dir, input_file, created_at, message=str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]forecast-ledger[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Conversion Start", border_style="blue",
        ))
        if profile:
            console.print(f"  Using profile: {profile}")
        if multi:
            console.print("  Mode: multi-entity (currency + entity id per row)")
        else:
            console.print(f"  Currency: {settings.currency}  Parent: {settings.parent_id}")
        console.print(
            "  Date policy: "
            f"slash={'DD/MM' if settings.policy.dayfirst else 'MM/DD'}, "
            f"year={settings.policy.default_year}"
        )

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading input file …")
    try:
        grid = load_grid(input_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _abort(out_dir, input_file, created_at, message=str(exc))

    rows_in = max(len(grid) - 1, 0)
    echo(f"  {len(grid)} rows x {max((len(r) for r in grid), default=0)} columns")

    try:
        # ── Parse + transform ────────────────────────────────────
        echo("[blue]>[/blue] Parsing headers …")
        try:
            table = _parse(grid, multi=multi, policy=settings.policy)
        except ForecastError as exc:
            _abort(out_dir, input_file, created_at, message=str(exc), rows_in=rows_in)
        echo(f"  {len(table.schema.date_columns)} date columns, {len(table.rows)} data rows")

        echo("[blue]>[/blue] Transforming rows …")
        if multi:
            records, qc = transform_with_report(table, policy=settings.policy)
        else:
            records, qc = transform_with_report(
                table,
                currency=settings.currency,
                parent_id=settings.parent_id,
                policy=settings.policy,
            )

        qc_path = write_qc_report(out_dir, qc)
        echo(f"  QC report -> {qc_path}")
        if not quiet:
            for w in qc.warnings:
                console.print(f"  [yellow]![/yellow] {w}")
            console.print(f"  {qc.records_out} records from {qc.rows_out} rows")

        # ── Write outputs ────────────────────────────────────────
        outputs: list[Path] = []
        if output_format in (OutputFormat.csv, OutputFormat.both):
            outputs.append(write_csv(out_dir / CSV_NAME, records))
        if output_format in (OutputFormat.xlsx, OutputFormat.both):
            outputs.append(write_workbook(out_dir / XLSX_NAME, records))
        for path in outputs:
            echo(f"  Output -> {path}")

        manifest_path = write_manifest(out_dir, input_file, created_at, qc, outputs=outputs)
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green]: {qc.records_out} records -> {out_dir}",
                title="Conversion Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        _abort(
            out_dir,
            input_file,
            created_at,
            message=f"Unexpected internal error: {exc}",
            rows_in=rows_in,
            error_code=1,
        )


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to CSV or XLSX forecast file.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for QC + manifest.",
    ),
    multi: bool = typer.Option(
        False, "--multi",
        help="Expect per-row currency and entity id columns.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with key=value defaults (currency, parent_id, year, dayfirst).",
    ),
    dayfirst: bool | None = typer.Option(
        None,
        "--dayfirst/--monthfirst",
        help="Tie-break for ambiguous slash headers like 03/04/2025 (default month first).",
    ),
    year: int | None = typer.Option(
        None, "--year",
        help=f"Year for 'Mon D' headers (default {DEFAULT_YEAR}).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes QC + manifest.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log header classification and skipped rows.",
    ),
) -> None:
    """Show how a forecast sheet's headers are read, without writing outputs.

    Writes qc_report.json + run_manifest.json only.
    Exit 0 = OK, exit 2 = the sheet cannot be converted.
    """
    _configure_logging(verbose)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        settings = _resolve_settings(
            profile, currency=None, parent_id=None, year=year, dayfirst=dayfirst
        )
    except ValueError as exc:
        _abort(out_dir, input_file, created_at, message=str(exc))

    try:
        grid = load_grid(input_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _abort(out_dir, input_file, created_at, message=str(exc))

    rows_in = max(len(grid) - 1, 0)
    try:
        try:
            table = _parse(grid, multi=multi, policy=settings.policy)
        except ForecastError as exc:
            _abort(out_dir, input_file, created_at, message=str(exc), rows_in=rows_in)

        if multi:
            _records, qc = transform_with_report(table, policy=settings.policy)
        else:
            _records, qc = transform_with_report(
                table,
                currency=settings.currency,
                parent_id=settings.parent_id,
                policy=settings.policy,
            )
        qc_path = write_qc_report(out_dir, qc)
        manifest_path = write_manifest(out_dir, input_file, created_at, qc)

        if not quiet:
            console.print(Panel(
                f"[bold]forecast-ledger[/bold] v{__version__}  [dim]inspect mode[/dim]\n"
                f"Input: {input_file}",
                title="Inspect", border_style="cyan",
            ))
            console.print(_schema_table(table, settings.policy))

            tbl = RichTable(title="Inspection Summary", show_lines=True)
            tbl.add_column("Check", style="bold")
            tbl.add_column("Result")
            tbl.add_row("Data rows", str(qc.rows_in))
            tbl.add_row("Rows with records", str(qc.rows_out))
            tbl.add_row("Records", str(qc.records_out))
            for w in qc.warnings:
                tbl.add_row("Warning", f"[yellow]{w}[/yellow]")
            tbl.add_row("Status", "[green]PASS[/green]")
            console.print(tbl)
        console.print(f"  QC       -> {qc_path}")
        console.print(f"  Manifest -> {manifest_path}")
    except typer.Exit:
        raise
    except Exception as exc:
        _abort(
            out_dir,
            input_file,
            created_at,
            message=f"Unexpected internal error: {exc}",
            rows_in=rows_in,
            error_code=1,
        )

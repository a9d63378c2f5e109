"""Run artifacts: QC report, run manifest, and their helpers."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from forecast_ledger import __version__
from forecast_ledger.io import write_json
from forecast_ledger.models import QCReport, RunManifest

QC_REPORT_NAME = "qc_report.json"
MANIFEST_NAME = "run_manifest.json"


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def write_qc_report(out_dir: Path, qc: QCReport) -> Path:
    """Write ``qc_report.json`` into *out_dir* and return the path."""
    return write_json(Path(out_dir) / QC_REPORT_NAME, qc.to_dict())


def write_manifest(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    qc: QCReport,
    *,
    outputs: Sequence[Path] = (),
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    """Write ``run_manifest.json`` for a finished or failed run."""
    out_dir = Path(out_dir)
    try:
        digest = sha256_file(input_file)
    except OSError:
        digest = ""

    manifest = RunManifest(
        version=__version__,
        run_id=created_at,
        input_path=str(Path(input_file).resolve()),
        output_dir=str(out_dir.resolve()),
        outputs=[Path(p).name for p in outputs],
        created_at_utc=created_at,
        rows_in=qc.rows_in,
        records_out=qc.records_out,
        sha256=digest,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / MANIFEST_NAME, manifest.to_dict())

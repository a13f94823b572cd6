"""Structured output for a clustering run.

RunContext gives each run:
  - Output directories: <results_root>/<name>/<analysis>/<date>/data/
  - Console capture: everything printed during the run lands in run_log.txt,
    including the clustering diagnostics and trace dumps
  - Run metadata (run_info.json): git hash, timestamps, parameters, outcome
  - A `latest` symlink pointing to the most recent run

Usage:
    with RunContext(name="113th_2013-2014", analysis_name="clusters", params=vars(args)) as ctx:
        assignments.write_parquet(ctx.data_dir / "cluster_assignments.parquet")
        ctx.outcome["n_clusters"] = len(result)
"""

from __future__ import annotations

import io
import json
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType


class _TeeStream:
    """Duplicates writes to the original stream and an in-memory buffer."""

    def __init__(self, original: io.TextIOBase) -> None:
        self._original = original
        self._buffer = io.StringIO()

    def write(self, data: str) -> int:
        self._original.write(data)
        self._buffer.write(data)
        return len(data)

    def flush(self) -> None:
        self._original.flush()

    def getvalue(self) -> str:
        return self._buffer.getvalue()


def _git_commit_hash() -> str:
    """Current git commit hash, or 'unknown' outside a repo."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass
    return "unknown"


class RunContext:
    """Context manager that sets up output directories and log capture for a run.

    Attributes:
        name: Dataset name, used as the top-level results directory.
        analysis_name: Name of the step (e.g. "clusters").
        params: Parameters recorded in run_info.json.
        outcome: Free-form summary values recorded in run_info.json.
        run_dir: Root of this run's output.
        data_dir: Directory for parquet outputs.
    """

    def __init__(
        self,
        name: str,
        analysis_name: str,
        params: dict | None = None,
        results_root: Path | None = None,
        primer: str | None = None,
    ) -> None:
        self.name = name
        self.analysis_name = analysis_name
        self.params = params or {}
        self.outcome: dict = {}

        root = results_root or Path("results")
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        self._analysis_dir = root / name / analysis_name
        self.run_dir = self._analysis_dir / today
        self.data_dir = self.run_dir / "data"

        self._today = today
        self._primer = primer
        self._tee: _TeeStream | None = None
        self._original_stdout: io.TextIOBase | None = None
        self._start_time: datetime | None = None

    def __enter__(self) -> RunContext:
        self.setup()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.finalize(failed=exc_type is not None)

    def setup(self) -> None:
        """Create directories, write the primer, and start capturing stdout."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        if self._primer:
            (self._analysis_dir / "README.md").write_text(self._primer, encoding="utf-8")

        self._original_stdout = sys.stdout
        self._tee = _TeeStream(sys.stdout)
        sys.stdout = self._tee  # type: ignore[assignment]
        self._start_time = datetime.now(timezone.utc)

    def finalize(self, failed: bool = False) -> None:
        """Write run_log.txt and run_info.json, then point `latest` at this run."""
        log_text = self._tee.getvalue() if self._tee is not None else ""
        if self._original_stdout is not None:
            sys.stdout = self._original_stdout  # type: ignore[assignment]

        (self.run_dir / "run_log.txt").write_text(log_text, encoding="utf-8")

        run_info = {
            "analysis": self.analysis_name,
            "name": self.name,
            "run_date": self._today,
            "timestamp_start": (self._start_time.isoformat() if self._start_time else None),
            "timestamp_end": datetime.now(timezone.utc).isoformat(),
            "git_commit": _git_commit_hash(),
            "python_version": sys.version,
            "status": "failed" if failed else "ok",
            "params": self.params,
            "outcome": self.outcome,
        }
        with open(self.run_dir / "run_info.json", "w") as f:
            json.dump(run_info, f, indent=2, default=str)

        latest = self._analysis_dir / "latest"
        if latest.is_symlink() or latest.exists():
            latest.unlink()
        latest.symlink_to(self._today)

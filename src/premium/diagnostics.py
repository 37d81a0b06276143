from __future__ import annotations

"""
Diagnostics helpers for structured run outputs.
"""

from collections import Counter
from datetime import datetime, timezone
import hashlib
import json
from pathlib import Path
import platform
import sys
from typing import Any, Mapping, Sequence

from .batch import QuoteBatchResult
from .models import Dataset


def _config_hash(config: dict) -> str:
    payload = json.dumps(config, sort_keys=True, ensure_ascii=True, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _file_digest(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {"path": str(path), "exists": False}

    hasher = hashlib.sha256()
    size_bytes = 0
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            size_bytes += len(chunk)
            hasher.update(chunk)
    return {
        "path": str(path),
        "exists": True,
        "size_bytes": size_bytes,
        "sha256": hasher.hexdigest(),
    }


def build_execution_context(
    base_dir: Path,
    input_paths: Sequence[Path] = (),
    config_path: Path | None = None,
    command: str | None = None,
    argv: Sequence[str] | None = None,
) -> dict[str, Any]:
    deduped: dict[str, Path] = {}
    for path in input_paths:
        deduped[str(path)] = path
    return {
        "command": command,
        "argv": list(argv) if argv is not None else [],
        "cwd": str(Path.cwd().resolve()),
        "base_dir": str(base_dir.resolve()),
        "config_path": str(config_path.resolve()) if config_path is not None else None,
        "python_version": sys.version.split()[0],
        "platform": platform.platform(),
        "input_files": [_file_digest(path) for path in deduped.values()],
    }


def _dataset_section(dataset: Dataset) -> dict[str, Any]:
    factors = dataset.modal_factors
    return {
        "version": dataset.info.version,
        "last_updated": dataset.info.last_updated,
        "plan_count": len(dataset.plans),
        "plan_keys": list(dataset.index.keys()),
        "modal_factors": {
            "annual": factors.annual,
            "semi_annual": factors.semi_annual,
            "quarterly": factors.quarterly,
            "monthly": factors.monthly,
        },
    }


def build_run_summary(
    config: dict,
    dataset: Dataset,
    result: QuoteBatchResult,
    source: str = "run",
    execution_context: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    quotes: list[dict[str, Any]] = []
    failures: list[dict[str, Any]] = []
    failure_codes: Counter[str] = Counter()
    premium_total = 0

    for row in result.summary.to_dict(orient="records"):
        entry = {
            "quote_id": row["quote_id"],
            "plan": row["plan"],
            "status": row["status"],
        }
        if row["status"] == "ok":
            annual = int(row["annual_premium"])
            premium_total += annual
            entry["premiums"] = {
                "annual": annual,
                "semi_annual": int(row["semi_annual"]),
                "quarter": int(row["quarter"]),
                "month": int(row["month"]),
            }
            entry["rates"] = {
                "base": float(row["base_rate"]),
                "effective": float(row["effective_rate"]),
            }
        else:
            failure_codes[str(row["error_code"])] += 1
            failures.append(
                {
                    "quote_id": row["quote_id"],
                    "code": row["error_code"],
                    "message": row["error_message"],
                }
            )
        quotes.append(entry)

    meta: dict[str, Any] = {
        "source": source,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "config_hash": _config_hash(config),
    }
    if execution_context is not None:
        meta["execution_context"] = dict(execution_context)

    return {
        "meta": meta,
        "dataset": _dataset_section(dataset),
        "summary": {
            "quote_count": len(quotes),
            "ok_count": len(quotes) - len(failures),
            "failure_count": len(failures),
            "failures_by_code": dict(sorted(failure_codes.items())),
            "annual_premium_total": premium_total,
        },
        "quotes": quotes,
        "failures": failures,
    }

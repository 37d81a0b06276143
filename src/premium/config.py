from __future__ import annotations

"""
Run configuration for batch quoting.

Example
    dataset:
      path: data/plans.json
    quotes_csv_path: data/quote_requests.csv
    quotes:
      - id: q1
        plan: term10
        sex: male
        age: 30
        sum_assured: 500000
    outputs:
      excel_path: out/quotes.xlsx
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

DEFAULT_EXCEL_PATH = "out/quotes.xlsx"
DEFAULT_LOG_PATH = "out/quotes.log"
DEFAULT_RUN_SUMMARY_PATH = "out/run_summary.json"


@dataclass(frozen=True)
class OutputSettings:
    excel_path: str
    log_path: str
    run_summary_path: str


@dataclass(frozen=True)
class QuoteRunSettings:
    """
    Settings for one `run` invocation.

    Paths are kept as written; resolve them against the base directory.
    """

    dataset_path: str
    quotes_csv_path: str | None
    outputs: OutputSettings


def _as_mapping(raw: object) -> Mapping[str, object]:
    if not isinstance(raw, Mapping):
        return {}
    return raw


def load_config_file(path: Path) -> dict:
    if not path.is_file():
        raise ValueError(f"Config file not found: {path}")
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    return payload


def load_run_settings(config: Mapping[str, object]) -> QuoteRunSettings:
    dataset_cfg = _as_mapping(config.get("dataset"))
    dataset_path = str(dataset_cfg.get("path", "")).strip()
    if not dataset_path:
        raise ValueError("dataset.path is required.")

    quotes_csv_path = config.get("quotes_csv_path")
    outputs_cfg = _as_mapping(config.get("outputs"))

    return QuoteRunSettings(
        dataset_path=dataset_path,
        quotes_csv_path=None if quotes_csv_path in (None, "") else str(quotes_csv_path),
        outputs=OutputSettings(
            excel_path=str(outputs_cfg.get("excel_path", DEFAULT_EXCEL_PATH)),
            log_path=str(outputs_cfg.get("log_path", DEFAULT_LOG_PATH)),
            run_summary_path=str(outputs_cfg.get("run_summary_path", DEFAULT_RUN_SUMMARY_PATH)),
        ),
    )

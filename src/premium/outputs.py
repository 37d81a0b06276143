from __future__ import annotations

"""
Output helpers for batch quote results.
"""

from pathlib import Path
import json

from openpyxl import Workbook
import pandas as pd

from .batch import QuoteBatchResult
from .diagnostics import build_run_summary
from .models import Dataset


def _write_frame(ws, frame) -> None:
    for col_idx, name in enumerate(frame.columns, start=1):
        ws.cell(row=1, column=col_idx, value=name)
    for row_idx, row in enumerate(frame.itertuples(index=False), start=2):
        for col_idx, value in enumerate(row, start=1):
            if pd.isna(value):
                value = None
            ws.cell(row=row_idx, column=col_idx, value=value)


def write_quotes_excel(path: Path, dataset: Dataset, result: QuoteBatchResult) -> Path:
    """
    Write quote rows and a dataset overview to an Excel workbook.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    ws = wb.active
    ws.title = "quotes"
    _write_frame(ws, result.summary)

    info_ws = wb.create_sheet(title="dataset")
    info_ws["A1"] = "version"
    info_ws["B1"] = dataset.info.version
    info_ws["A2"] = "last_updated"
    info_ws["B2"] = dataset.info.last_updated
    info_ws["A3"] = "modal_factor_annual"
    info_ws["B3"] = dataset.modal_factors.annual
    info_ws["A4"] = "modal_factor_semi_annual"
    info_ws["B4"] = dataset.modal_factors.semi_annual
    info_ws["A5"] = "modal_factor_quarterly"
    info_ws["B5"] = dataset.modal_factors.quarterly
    info_ws["A6"] = "modal_factor_monthly"
    info_ws["B6"] = dataset.modal_factors.monthly

    info_ws.cell(row=8, column=1, value="plan_key")
    info_ws.cell(row=8, column=2, value="plan_name")
    info_ws.cell(row=8, column=3, value="calculation_type")
    for row_idx, plan in enumerate(dataset.plans, start=9):
        info_ws.cell(row=row_idx, column=1, value=plan.plan_key)
        info_ws.cell(row=row_idx, column=2, value=plan.plan_name)
        info_ws.cell(row=row_idx, column=3, value=plan.calculation_type.value)

    wb.save(path)
    return path


def write_quote_log(path: Path, dataset: Dataset, result: QuoteBatchResult) -> Path:
    """
    Write a plain-text log with the dataset header and one line per quote.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "quotes",
        f"dataset_version: {dataset.info.version or 'n/a'}",
        f"dataset_last_updated: {dataset.info.last_updated or 'n/a'}",
        f"plan_count: {len(dataset.plans)}",
        f"modal_factors: annual={dataset.modal_factors.annual} "
        f"semi_annual={dataset.modal_factors.semi_annual} "
        f"quarterly={dataset.modal_factors.quarterly} monthly={dataset.modal_factors.monthly}",
        "quote_results",
    ]
    for row in result.summary.itertuples(index=False):
        prefix = f"{row.quote_id} plan={row.plan} sex={row.sex} age={row.age} sum_assured={row.sum_assured}"
        if row.status == "ok":
            lines.append(
                f"{prefix} base_rate={row.base_rate} effective_rate={row.effective_rate} "
                f"annual={row.annual_premium} semi_annual={row.semi_annual} "
                f"quarter={row.quarter} month={row.month} status=ok"
            )
        else:
            lines.append(f"{prefix} status=error code={row.error_code}")
            lines.append(f"error: {row.quote_id} {row.error_message}")

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def write_run_summary_json(
    path: Path,
    config: dict,
    dataset: Dataset,
    result: QuoteBatchResult,
    source: str = "run",
    execution_context: dict[str, object] | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    summary = build_run_summary(
        config,
        dataset,
        result,
        source=source,
        execution_context=execution_context,
    )
    path.write_text(json.dumps(summary, indent=2, ensure_ascii=True), encoding="utf-8")
    return path

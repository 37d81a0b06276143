from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from premium.config import load_config_file, load_run_settings  # noqa: E402


def test_load_run_settings_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "quotes.yaml"
    config_path.write_text(
        yaml.safe_dump({"dataset": {"path": "data/plans.json"}}, sort_keys=False),
        encoding="utf-8",
    )

    settings = load_run_settings(load_config_file(config_path))
    assert settings.dataset_path == "data/plans.json"
    assert settings.quotes_csv_path is None
    assert settings.outputs.excel_path == "out/quotes.xlsx"
    assert settings.outputs.log_path == "out/quotes.log"
    assert settings.outputs.run_summary_path == "out/run_summary.json"


def test_load_run_settings_overrides() -> None:
    settings = load_run_settings(
        {
            "dataset": {"path": "rates.json"},
            "quotes_csv_path": "requests.csv",
            "outputs": {"excel_path": "x.xlsx", "log_path": "x.log", "run_summary_path": "x.json"},
        }
    )
    assert settings.quotes_csv_path == "requests.csv"
    assert settings.outputs.excel_path == "x.xlsx"
    assert settings.outputs.log_path == "x.log"
    assert settings.outputs.run_summary_path == "x.json"


def test_load_run_settings_requires_dataset_path() -> None:
    with pytest.raises(ValueError, match="dataset.path"):
        load_run_settings({"dataset": {"path": "  "}})


def test_load_config_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        load_config_file(tmp_path / "missing.yaml")

    list_root = tmp_path / "list.yaml"
    list_root.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config_file(list_root)

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_config_file(empty) == {}


def test_repo_config_file_is_loadable() -> None:
    config = load_config_file(REPO_ROOT / "configs" / "quotes-001.yaml")
    settings = load_run_settings(config)
    assert settings.dataset_path == "data/plans.json"
    assert settings.quotes_csv_path == "data/quote_requests.csv"

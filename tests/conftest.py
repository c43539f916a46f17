# Shared pytest fixtures
from __future__ import annotations
import logging
import tempfile
from pathlib import Path
import pandas as pd
import pytest

from datasphere.logging.init import APP_LOGGER_NAME, reset_logging
from datasphere.models.dataset import Dataset


@pytest.fixture(autouse=True)
def _reset_app_logging():
    # CLI テストが capsys の stdout に handler を張るため毎回外す
    yield
    reset_logging()
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        # setenv で元の状態を記録させてから消す (.env で設定されても終了時に戻る)
        monkeypatch.setenv("DATASPHERE_CONFIG", "")
        monkeypatch.delenv("DATASPHERE_CONFIG")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """numeric_threshold: 0.8
date_year_bounds: [1900, 2100]
totals_mode: cell_sum
placeholder: "-"
keep_na_strings: [NA]
null_sentinels: ["(null)"]
default_sheet: null
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "analysis.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sales_dataset() -> Dataset:
    return Dataset.from_rows(
        ["region", "product", "sales"],
        [
            {"region": "East", "product": "A", "sales": 10},
            {"region": "East", "product": "B", "sales": 20},
            {"region": "West", "product": "A", "sales": 5},
        ],
    )


@pytest.fixture()
def orders_dataset() -> Dataset:
    # messy rows on purpose: blank keys, text values, booleans
    return Dataset.from_rows(
        ["region", "product", "channel", "qty", "customer"],
        [
            {"region": "East", "product": "A", "channel": "web", "qty": 4, "customer": "c1"},
            {"region": "East", "product": "A", "channel": "store", "qty": 6, "customer": "c2"},
            {"region": "East", "product": "B", "channel": "web", "qty": "3", "customer": "c1"},
            {"region": "West", "product": "A", "channel": "web", "qty": 10, "customer": "c3"},
            {"region": "West", "product": "B", "channel": "store", "qty": 2.5, "customer": "c3"},
            {"region": "West", "product": "B", "channel": "web", "qty": "n/a", "customer": "c4"},
            {"region": "", "product": "A", "channel": "web", "qty": 100, "customer": "c5"},
            {"region": "North", "product": None, "channel": "web", "qty": 7, "customer": "c6"},
        ],
    )


@pytest.fixture()
def make_excel(temp_workdir: Path):
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        p = temp_workdir / "data" / name
        with pd.ExcelWriter(p) as writer:
            for sheet, rows in sheets.items():
                df = pd.DataFrame(rows)
                df.to_excel(writer, sheet_name=sheet, header=False, index=False)
        return p
    return _make

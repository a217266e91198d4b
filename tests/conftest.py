# ruff: noqa: E501
"""Pytest configuration for test isolation.

The CLI and :class:`finance_ingest.store.FileBlobStore` persist state under a
default working-directory-relative path (``./.finance_ingest/state.json``).
When tests run in the same working tree, that file would leak records from one
test into the next, so every test gets its own state path.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.helpers.csv_text import dedent_csv


@pytest.fixture(autouse=True)
def _isolate_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test state file and keep a developer's database out of reach.

    The application reads ``FI_STATE_PATH`` (when set) to override the default
    location, and ``FI_DATABASE_URL`` to switch to SQL storage.
    """

    state_root = tmp_path / "state"
    state_root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("FI_STATE_PATH", os.fspath(state_root / "state.json"))
    monkeypatch.delenv("FI_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("FI_PARSE_MAX_WORKERS", raising=False)


@pytest.fixture
def bofa_csv() -> str:
    return dedent_csv(
        """
        Description,,Summary Amt.
        Beginning balance as of 01/01/2024,,"1,000.00"
        Total credits,,"2,500.00"
        Ending balance as of 01/31/2024,,"3,100.00"

        Date,Description,Amount,Running Bal.
        01/02/2024,Beginning balance as of 01/02/2024,,"1,000.00"
        01/03/2024,STARBUCKS #123,-5.75,994.25
        01/05/2024,ACME PAYROLL DIRECT DEP,"2,500.00","3,494.25"
        01/09/2024,ZELLE TO JOHN,-200.00,"3,294.25"
        """
    )


@pytest.fixture
def schwab_csv() -> str:
    return dedent_csv(
        """
        "Transactions for account XXXX-1234 as of 01/31/2024"
        "Date","Action","Symbol","Description","Quantity","Price","Fees & Comm","Amount"
        "01/10/2024","Buy","VTI","VANGUARD TOTAL STOCK MKT ETF","10","$235.00","","-$2,350.00"
        "01/15/2024","Qualified Dividend","VTI","VANGUARD TOTAL STOCK MKT ETF","","","","$12.34"
        "01/20/2024","Journal","","JOURNAL FROM CHECKING","","","","$1,000.00"
        "01/22/2024 as of 01/19/2024","Sell","AAPL","APPLE INC","5","$190.00","$0.65",""
        "Transactions Total","","","","","","","--"
        """
    )


@pytest.fixture
def kraken_csv() -> str:
    return dedent_csv(
        """
        "txid","refid","time","type","subtype","aclass","asset","amount","fee","balance"
        "L1","R1","2024-01-11 09:15:02","deposit","","currency","ZUSD","500.0000","0.0000","500.0000"
        "L2","R2","2024-01-12 14:00:00","trade","","currency","XXBT","0.0100000000","0.0000","0.0100000000"
        "L3","R3","2024-01-12 14:00:00","trade","","currency","ZUSD","-430.0000","1.1200","68.8800"
        "L4","R4","2024-01-20 00:00:00","staking","","currency","XETH","0.0021","0.0000","0.5021"
        """
    )

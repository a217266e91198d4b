from __future__ import annotations

from decimal import Decimal

import pytest

from finance_ingest import (
    Category,
    EditTransaction,
    IngestionPipeline,
    Source,
    SourceFile,
    Status,
    UnparseableFileError,
    apply,
    sequential_ids,
)

from tests.helpers.csv_text import dedent_csv


def _pipeline() -> IngestionPipeline:
    return IngestionPipeline(id_factory=sequential_ids())


def test_bank_import_with_preamble(bofa_csv: str) -> None:
    result = _pipeline().import_text([], bofa_csv, name="bofa.csv")

    s = result.summary
    assert (s.source, s.account) == (Source.BANK, "Bank Account")
    # The "Beginning balance" row has no amount.
    assert (s.imported, s.skipped, s.flagged) == (3, 1, 0)
    assert [tx.description for tx in result.transactions] == [
        "STARBUCKS #123",
        "ACME PAYROLL DIRECT DEP",
        "ZELLE TO JOHN",
    ]
    assert [tx.id for tx in result.transactions] == ["t1", "t2", "t3"]


def test_brokerage_and_exchange_are_detected(schwab_csv: str, kraken_csv: str) -> None:
    pipeline = _pipeline()

    schwab = pipeline.import_text([], schwab_csv)
    kraken = pipeline.import_text(schwab.transactions, kraken_csv)

    assert schwab.summary.source is Source.BROKERAGE
    assert (schwab.summary.imported, schwab.summary.skipped) == (4, 1)
    assert kraken.summary.source is Source.EXCHANGE
    assert kraken.summary.account == "Exchange Account"
    assert kraken.summary.imported == 4
    assert len(kraken.transactions) == 8


def test_reimporting_the_same_file_is_idempotent(bofa_csv: str) -> None:
    pipeline = _pipeline()
    first = pipeline.import_text([], bofa_csv)

    second = pipeline.import_text(first.transactions, bofa_csv)

    assert second.transactions == first.transactions
    assert second.summary.imported == 0
    assert second.summary.skipped == 4
    assert [tx.description for tx in second.summary.duplicates] == [
        "STARBUCKS #123",
        "ACME PAYROLL DIRECT DEP",
        "ZELLE TO JOHN",
    ]


def test_duplicates_and_bad_rows_are_counted_as_skipped() -> None:
    pipeline = _pipeline()
    stored = pipeline.import_text(
        [],
        dedent_csv(
            """
            Date,Description,Amount
            01/02/2024,WHOLE FOODS MARKET,-54.20
            01/03/2024,SHELL OIL 5744,-40.00
            """
        ),
    ).transactions

    result = pipeline.import_text(
        stored,
        dedent_csv(
            """
            Date,Description,Amount
            01/02/2024,WHOLE FOODS MARKET,-54.20
            01/03/2024,SHELL OIL 5744,-40.00
            13/45/2024,BAD DATE ROW,-1.00
            01/04/2024,NETFLIX.COM,-15.49
            01/05/2024,ACME PAYROLL,"2,500.00"
            01/06/2024,CHIPOTLE 1234,-12.85
            01/07/2024,CVS/PHARMACY #0042,-8.99
            01/08/2024,COMCAST CABLE,-89.99
            01/09/2024,CORNER STORE,-7.25
            01/10/2024,MISC CREDIT,12.34
            """
        ),
    )

    s = result.summary
    assert (s.imported, s.skipped) == (7, 3)
    # CORNER STORE and MISC CREDIT fall below the auto-approval threshold.
    assert s.flagged == 2
    assert len(result.transactions) == 9
    by_desc = {tx.description: tx for tx in result.transactions}
    assert by_desc["SHELL OIL 5744"].category is Category.TRANSPORTATION
    assert by_desc["CVS/PHARMACY #0042"].category is Category.HEALTH
    assert by_desc["CORNER STORE"].status is Status.PENDING


_CHECKING_CSV = "Date,Description,Amount\n01/02/2024,ONLINE PMT 8841,-250.50\n"
_SAVINGS_CSV = "Date,Description,Amount\n01/04/2024,INCOMING 8841,250.50\n"


def test_transfer_pair_across_imports_flags_only_the_new_side() -> None:
    pipeline = _pipeline()
    checking = pipeline.import_text([], _CHECKING_CSV, account="Checking")
    assert checking.summary.flagged == 1

    savings = pipeline.import_text(checking.transactions, _SAVINGS_CSV, account="Savings")

    stored, new = savings.transactions
    assert stored == checking.transactions[0]
    assert stored.category is Category.UNCATEGORIZED
    assert stored.status is Status.PENDING
    assert new.category is Category.TRANSFER
    assert new.is_transfer is True
    assert new.status is Status.FLAGGED
    assert new.confidence == pytest.approx(0.9)
    assert savings.summary.flagged == 1


def test_later_pairing_import_keeps_a_reviewed_stored_record() -> None:
    pipeline = _pipeline()
    checking = pipeline.import_text([], _CHECKING_CSV, account="Checking")
    reviewed = apply(
        checking.transactions,
        EditTransaction(txn_id="t1", category="Housing", status="approved"),
    )

    savings = pipeline.import_text(reviewed, _SAVINGS_CSV, account="Savings")

    kept, new = savings.transactions
    assert kept.id == "t1"
    assert (kept.category, kept.status, kept.reviewed) == (Category.HOUSING, Status.APPROVED, True)
    assert kept.is_transfer is False
    assert (new.id, new.status) == ("t2", Status.FLAGGED)


def test_transfer_pair_within_one_batch_flags_both_sides() -> None:
    files = [
        SourceFile(text=_CHECKING_CSV, name="checking.csv", account="Checking"),
        SourceFile(text=_SAVINGS_CSV, name="savings.csv", account="Savings"),
    ]

    result = _pipeline().import_batch([], files)

    assert len(result.transactions) == 2
    for tx in result.transactions:
        assert tx.category is Category.TRANSFER
        assert tx.status is Status.FLAGGED
    assert [s.flagged for s in result.summaries] == [1, 1]


def test_batch_with_stored_partner_leaves_it_alone() -> None:
    pipeline = _pipeline()
    stored = pipeline.import_text([], _CHECKING_CSV, account="Checking").transactions

    result = pipeline.import_batch(
        stored, [SourceFile(text=_SAVINGS_CSV, name="savings.csv", account="Savings")]
    )

    assert result.transactions[0] == stored[0]
    assert result.transactions[1].status is Status.FLAGGED


def test_explicit_source_and_account_override_detection(bofa_csv: str) -> None:
    parsed = _pipeline().parse(bofa_csv, source="bank", account="  Joint Checking ")

    assert parsed.source is Source.BANK
    assert parsed.account == "Joint Checking"
    assert {tx.account for tx in parsed.transactions} == {"Joint Checking"}


def test_unparseable_text_raises() -> None:
    with pytest.raises(UnparseableFileError):
        _pipeline().import_text([], "this is not a spreadsheet\n")


def test_batch_keeps_committed_files_when_one_fails(bofa_csv: str, kraken_csv: str) -> None:
    files = [
        SourceFile(text=bofa_csv, name="bofa.csv"),
        SourceFile(text="nothing tabular here", name="notes.txt"),
        SourceFile(text=kraken_csv, name="kraken.csv"),
    ]

    result = _pipeline().import_batch([], files)

    assert [s.file_name for s in result.summaries] == ["bofa.csv", "kraken.csv"]
    assert [f.name for f in result.failures] == ["notes.txt"]
    assert len(result.transactions) == 7
    assert len({tx.id for tx in result.transactions}) == 7


def test_batch_records_unknown_source_as_a_failure(bofa_csv: str, kraken_csv: str) -> None:
    files = [
        SourceFile(text=bofa_csv, name="bofa.csv"),
        SourceFile(text=kraken_csv, name="ledger.csv", source="ledger"),
    ]

    result = _pipeline().import_batch([], files)

    assert [s.file_name for s in result.summaries] == ["bofa.csv"]
    assert [f.name for f in result.failures] == ["ledger.csv"]
    assert "ledger" in result.failures[0].error
    assert len(result.transactions) == 3


def test_batch_commits_in_submission_order(bofa_csv: str) -> None:
    files = [
        SourceFile(text=bofa_csv, name="first.csv"),
        SourceFile(text=bofa_csv, name="second.csv"),
    ]

    result = _pipeline().import_batch([], files)

    first, second = result.summaries
    assert (first.file_name, first.imported) == ("first.csv", 3)
    assert (second.file_name, second.imported, second.skipped) == ("second.csv", 0, 4)


def test_batch_can_stop_between_files(bofa_csv: str, kraken_csv: str) -> None:
    answers = iter([True, False])
    files = [SourceFile(text=bofa_csv, name="a.csv"), SourceFile(text=kraken_csv, name="b.csv")]

    result = _pipeline().import_batch([], files, should_continue=lambda: next(answers))

    assert [s.file_name for s in result.summaries] == ["a.csv"]
    assert len(result.transactions) == 3


def test_input_collection_is_not_modified(bofa_csv: str) -> None:
    existing: list = []
    _pipeline().import_text(existing, bofa_csv)

    assert existing == []


def test_parse_max_workers_env(monkeypatch: pytest.MonkeyPatch) -> None:
    from finance_ingest.pipeline import _resolve_max_workers

    assert _resolve_max_workers(3) == 3
    assert _resolve_max_workers(20) == 8
    monkeypatch.setenv("FI_PARSE_MAX_WORKERS", "2")
    assert _resolve_max_workers(20) == 2
    monkeypatch.setenv("FI_PARSE_MAX_WORKERS", "bogus")
    assert _resolve_max_workers(20) == 8


def test_amounts_are_decimals(bofa_csv: str) -> None:
    result = _pipeline().import_text([], bofa_csv)

    assert result.transactions[1].amount == Decimal("2500.00")

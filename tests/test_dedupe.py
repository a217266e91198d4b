from __future__ import annotations

from decimal import Decimal

from finance_ingest import Category, Source, Transaction, TxType, deduplicate


def _tx(
    id: str, date: str, description: str, amount: str, *, account: str = "Checking"
) -> Transaction:
    return Transaction(
        id=id,
        date=date,
        description=description,
        amount=Decimal(amount),
        category=Category.UNCATEGORIZED,
        confidence=0.1,
        is_transfer=False,
        source=Source.BANK,
        account=account,
        type=TxType.EXPENSE,
    )


def test_duplicates_of_stored_records_are_dropped_and_returned() -> None:
    stored = [_tx("a", "2024-01-03", "CORNER STORE", "-3.00")]
    incoming = [
        _tx("b", "2024-01-03", "CORNER STORE", "-3.00"),
        _tx("c", "2024-01-04", "CORNER STORE", "-3.00"),
    ]

    result = deduplicate(stored, incoming)

    assert [tx.id for tx in result.fresh] == ["c"]
    assert [tx.id for tx in result.duplicates] == ["b"]


def test_identity_ignores_account_and_source() -> None:
    stored = [_tx("a", "2024-01-03", "CORNER STORE", "-3.00", account="Card One")]
    incoming = [_tx("b", "2024-01-03", "CORNER STORE", "-3.00", account="Card Two")]

    assert deduplicate(stored, incoming).fresh == ()


def test_amount_identity_is_numeric() -> None:
    stored = [_tx("a", "2024-01-03", "CORNER STORE", "-3.00")]

    assert deduplicate(stored, [_tx("b", "2024-01-03", "CORNER STORE", "-3")]).fresh == ()


def test_identical_rows_within_one_file_are_both_admitted() -> None:
    incoming = [
        _tx("a", "2024-01-03", "CORNER STORE", "-3.00"),
        _tx("b", "2024-01-03", "CORNER STORE", "-3.00"),
    ]

    assert len(deduplicate([], incoming).fresh) == 2

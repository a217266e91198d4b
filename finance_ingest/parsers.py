"""Source parsers: raw CSV rows -> canonical :class:`Transaction` records.

One generator per source family. Each consumes ``dict`` rows (header ->
cell), resolves logical fields through the per-source :mod:`.fields` priority
lists and yields a record per usable row. Rows without a parseable date or
amount are dropped; the pipeline reports them in aggregate as skipped.

- bank: keyword classification, debit/credit fallback, running balance
- brokerage: action column drives subtype and category
- exchange: asset-code translation, fiat vs. crypto handling
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from decimal import Decimal

from .classifier import classify
from .fields import BANK_FIELDS, BROKERAGE_FIELDS, EXCHANGE_FIELDS
from .ids import IdFactory
from .keywords import ASSET_CODES, FIAT_ASSETS
from .logging_setup import get_logger
from .models import Category, Source, Transaction, TxType
from .normalize import parse_amount, parse_date
from .review import review_state

STRUCTURAL_CONFIDENCE = 0.85

_logger = get_logger("finance_ingest.parsers")

type Row = Mapping[str, str | None]


def _text(value: str | None) -> str:
    return (value or "").strip()


def _drop(source: Source, pos: int, date: str | None) -> None:
    reason = "date" if date is None else "amount"
    _logger.debug("%s row %d dropped: unparseable %s", source, pos, reason)


# ---------------------------------------------------------------------------
# Bank
# ---------------------------------------------------------------------------


def _bank_amount(r: Row) -> Decimal | None:
    amount = parse_amount(BANK_FIELDS["amount"].resolve(r))
    if amount is not None:
        return amount
    debit = parse_amount(BANK_FIELDS["debit"].resolve(r))
    if debit is not None:
        return -abs(debit)
    credit = parse_amount(BANK_FIELDS["credit"].resolve(r))
    if credit is not None:
        return abs(credit)
    return None


def _parse_bank(rows: Iterable[Row], account: str, next_id: IdFactory) -> Iterator[Transaction]:
    f = BANK_FIELDS
    for pos, r in enumerate(rows):
        date = parse_date(f["date"].resolve(r))
        amount = _bank_amount(r)
        if date is None or amount is None:
            _drop(Source.BANK, pos, date)
            continue

        description = _text(f["description"].resolve(r))
        cl = classify(description, amount)
        if cl.is_transfer:
            tx_type = TxType.TRANSFER
        elif amount > 0:
            tx_type = TxType.INCOME
        else:
            tx_type = TxType.EXPENSE
        reviewed, status = review_state(cl.confidence)

        yield Transaction(
            id=next_id(),
            date=date,
            description=description,
            amount=amount,
            category=cl.category,
            confidence=cl.confidence,
            is_transfer=cl.is_transfer,
            source=Source.BANK,
            account=account,
            type=tx_type,
            balance=parse_amount(f["balance"].resolve(r)),
            reviewed=reviewed,
            status=status,
        )


# ---------------------------------------------------------------------------
# Brokerage
# ---------------------------------------------------------------------------

# (fragments, subtype, forced category); first matching fragment wins.
_ACTION_RULES: tuple[tuple[tuple[str, ...], TxType, Category | None], ...] = (
    (("buy",), TxType.BUY, None),
    (("sell",), TxType.SELL, None),
    (("div",), TxType.DIVIDEND, Category.INCOME),
    (("interest",), TxType.INTEREST, Category.INCOME),
    (("transfer", "journal"), TxType.TRANSFER, Category.TRANSFER),
)


def brokerage_action(action: str) -> tuple[TxType, Category]:
    """Map a brokerage action string to ``(subtype, category)``."""

    a = action.lower()
    for fragments, tx_type, forced in _ACTION_RULES:
        if any(frag in a for frag in fragments):
            return tx_type, forced or Category.INVESTMENTS
    return TxType.OTHER, Category.INVESTMENTS


def _brokerage_amount(r: Row) -> Decimal | None:
    amount = parse_amount(BROKERAGE_FIELDS["amount"].resolve(r))
    if amount is not None:
        return amount
    price = parse_amount(BROKERAGE_FIELDS["price"].resolve(r))
    quantity = parse_amount(BROKERAGE_FIELDS["quantity"].resolve(r))
    if price is not None and quantity is not None:
        return price * quantity
    return None


def _parse_brokerage(
    rows: Iterable[Row], account: str, next_id: IdFactory
) -> Iterator[Transaction]:
    f = BROKERAGE_FIELDS
    for pos, r in enumerate(rows):
        date = parse_date(f["date"].resolve(r))
        amount = _brokerage_amount(r)
        if date is None or amount is None:
            _drop(Source.BROKERAGE, pos, date)
            continue

        description = _text(f["description"].resolve(r))
        action = _text(f["action"].resolve(r))
        tx_type, category = brokerage_action(action)
        reviewed, status = review_state(STRUCTURAL_CONFIDENCE)

        yield Transaction(
            id=next_id(),
            date=date,
            description=f"{action} - {description}" if action else description,
            amount=amount,
            category=category,
            confidence=STRUCTURAL_CONFIDENCE,
            is_transfer=tx_type is TxType.TRANSFER,
            source=Source.BROKERAGE,
            account=account,
            type=tx_type,
            symbol=_text(f["symbol"].resolve(r)) or None,
            quantity=parse_amount(f["quantity"].resolve(r)),
            fees=parse_amount(f["fees"].resolve(r)),
            reviewed=reviewed,
            status=status,
        )


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------


def translate_asset(code: str) -> str:
    """Translate an exchange asset code (``XXBT``) to a common ticker (``BTC``)."""

    code = code.strip()
    return ASSET_CODES.get(code.upper(), code)


# Exchange ledger types kept verbatim as subtypes; anything else is "other".
_EXCHANGE_KINDS: frozenset[TxType] = frozenset(
    {TxType.TRADE, TxType.SPEND, TxType.RECEIVE, TxType.EARN}
)


def _exchange_kind(kind: str) -> tuple[TxType, Category]:
    if kind == "staking":
        return TxType.STAKING, Category.INCOME
    if kind in {"deposit", "withdrawal"}:
        return TxType.TRANSFER, Category.TRANSFER
    if kind in _EXCHANGE_KINDS:
        return TxType(kind), Category.CRYPTO
    return TxType.OTHER, Category.CRYPTO


def _parse_exchange(
    rows: Iterable[Row], account: str, next_id: IdFactory
) -> Iterator[Transaction]:
    f = EXCHANGE_FIELDS
    for pos, r in enumerate(rows):
        date = parse_date(f["timestamp"].resolve(r))
        amount = parse_amount(f["amount"].resolve(r))
        if date is None or amount is None:
            _drop(Source.EXCHANGE, pos, date)
            continue

        kind = _text(f["type"].resolve(r)).lower()
        asset = translate_asset(_text(f["asset"].resolve(r)))
        is_fiat = asset.upper() in FIAT_ASSETS
        tx_type, category = _exchange_kind(kind)
        reviewed, status = review_state(STRUCTURAL_CONFIDENCE)

        yield Transaction(
            id=next_id(),
            date=date,
            description=f"Exchange {kind}: {asset}",
            amount=amount,
            category=category,
            confidence=STRUCTURAL_CONFIDENCE,
            is_transfer=tx_type is TxType.TRANSFER,
            source=Source.EXCHANGE,
            account=account,
            type=tx_type,
            symbol=None if is_fiat else (asset or None),
            quantity=None if is_fiat else abs(amount),
            fees=parse_amount(f["fee"].resolve(r)),
            balance=parse_amount(f["balance"].resolve(r)),
            reviewed=reviewed,
            status=status,
        )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_PARSERS: Mapping[Source, Callable[[Iterable[Row], str, IdFactory], Iterator[Transaction]]] = {
    Source.BANK: _parse_bank,
    Source.BROKERAGE: _parse_brokerage,
    Source.EXCHANGE: _parse_exchange,
}


def parse_rows(
    source: Source | str,
    rows: Iterable[Row],
    *,
    account: str,
    id_factory: IdFactory,
) -> Iterator[Transaction]:
    """Yield canonical records for ``rows`` using the parser for ``source``."""

    return _PARSERS[Source(source)](rows, account, id_factory)


__all__ = ["brokerage_action", "parse_rows", "translate_asset"]

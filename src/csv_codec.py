"""
CSV adapters around the processor.

Input rows look like ``type, client, tx, amount``. The type column picks the
event variant and the remaining columns are read positionally for it.
Output rows are ``client,available,held,total,locked``.
"""
import csv
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Sequence, TextIO, Type

from errors import DecodeError
from models import (
    CLIENT_ID_MAX,
    TRANSACTION_ID_MAX,
    AccountSummary,
    Chargeback,
    ClientId,
    Deposit,
    Dispute,
    Event,
    Resolve,
    TransactionId,
    TransactionType,
    Withdrawal,
)

# Significant digits of the default decimal context. Longer amounts would be rounded.
AMOUNT_PRECISION = 28

INPUT_HEADER = ("type", "client", "tx", "amount")
SUMMARY_HEADER = ("client", "available", "held", "total", "locked")

_EVENT_CLASSES: Dict[TransactionType, Type] = {
    TransactionType.DEPOSIT: Deposit,
    TransactionType.WITHDRAWAL: Withdrawal,
    TransactionType.DISPUTE: Dispute,
    TransactionType.RESOLVE: Resolve,
    TransactionType.CHARGEBACK: Chargeback,
}


def decode_record(fields: Sequence[str]) -> Event:
    """Decode one CSV row into an event, reading the type column first."""
    normalized = [field.strip() for field in fields]

    if not normalized or not normalized[0]:
        raise DecodeError("missing transaction type")

    tag = normalized[0].lower()
    try:
        transaction_type = TransactionType(tag)
    except ValueError:
        expected = ", ".join(t.value for t in TransactionType)
        raise DecodeError(f"unknown transaction type {tag!r}, expected one of: {expected}") from None

    payload = normalized[1:]
    client_id = ClientId(_parse_id(payload, 0, "client", CLIENT_ID_MAX))
    transaction_id = TransactionId(_parse_id(payload, 1, "tx", TRANSACTION_ID_MAX))
    event_class = _EVENT_CLASSES[transaction_type]

    match transaction_type:
        case TransactionType.DEPOSIT | TransactionType.WITHDRAWAL:
            return event_class(client_id, transaction_id, _parse_amount(payload))
        case _:
            return event_class(client_id, transaction_id)


def read_events(stream: TextIO) -> Iterator[Event]:
    """
    Lazily decode events from an open CSV stream.
    The first row must be the header. Blank rows are skipped.
    """
    reader = csv.reader(stream)
    rows = _checked_rows(reader)

    header = next(rows, None)
    if header is None:
        raise DecodeError("input is empty, expected a header row")
    names = tuple(name.strip().lower() for name in header)
    if names[:3] != INPUT_HEADER[:3]:
        raise DecodeError(f"unexpected header {header!r}, expected: {', '.join(INPUT_HEADER)}")

    for row in rows:
        if not any(field.strip() for field in row):
            continue
        try:
            yield decode_record(row)
        except DecodeError as error:
            raise DecodeError(f"line {reader.line_num}: {error}") from error


def _checked_rows(reader) -> Iterator[List[str]]:
    """Yield raw rows, reporting unreadable input as DecodeError."""
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as error:
            raise DecodeError(f"line {reader.line_num}: {error}") from error
        except UnicodeDecodeError as error:
            raise DecodeError(f"after line {reader.line_num}: input is not valid UTF-8") from error
        yield row


def read_events_from_path(filepath: str) -> Iterator[Event]:
    """Read events from a CSV file, closing it once exhausted."""
    with open(filepath, "r", encoding="utf-8", newline="") as f:
        yield from read_events(f)


def format_decimal(value: Decimal) -> str:
    """Fixed-point rendering that keeps the precision already present in the value."""
    return f"{value:f}"


def write_summary(summaries: Iterable[AccountSummary], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(SUMMARY_HEADER)
    for summary in summaries:
        writer.writerow(
            [
                summary.client_id,
                format_decimal(summary.available),
                format_decimal(summary.held),
                format_decimal(summary.total),
                str(summary.locked).lower(),
            ]
        )


def _parse_id(payload: Sequence[str], index: int, name: str, maximum: int) -> int:
    if index >= len(payload) or not payload[index]:
        raise DecodeError(f"missing {name} field")

    raw = payload[index]
    try:
        value = int(raw)
    except ValueError:
        raise DecodeError(f"invalid {name} {raw!r}") from None

    if not 0 <= value <= maximum:
        raise DecodeError(f"{name} {value} out of range 0..{maximum}")
    return value


def _parse_amount(payload: Sequence[str]) -> Decimal:
    if len(payload) < 3 or not payload[2]:
        raise DecodeError("missing amount field")

    raw = payload[2]
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise DecodeError(f"invalid amount {raw!r}") from None

    if not amount.is_finite():
        raise DecodeError(f"invalid amount {raw!r}")
    if len(amount.as_tuple().digits) > AMOUNT_PRECISION:
        raise DecodeError(f"amount {raw!r} has more than {AMOUNT_PRECISION} significant digits")
    return amount

"""Flat-file encoding of ledger records.

Each record is its fields joined by a field separator, followed by a record
separator. Values are written as is: there is no escaping, so a phone,
category or name that contains either separator corrupts the stream.

Field order:

- account:  id, phone, balance
- payment:  id, account_id, amount, category, status
- favorite: id, account_id, name, amount, category

Decoding is lenient by default, which is what older dump files rely on:

- a record with fewer fields than its kind needs is skipped;
- an integer field that does not parse is read as ``0``;
- fields past the expected count are ignored (older writers left a
  trailing field separator on payments and favorites);
- a carriage return before the record separator is dropped, so dumps
  saved with CRLF line endings read the same.

Integers are plain base-10: an optional sign followed by ASCII digits.
Spaces, underscores and other digit scripts make a field unparsable.

A payment whose status is not a known tag is skipped in lenient mode as well.
With ``strict=True`` nothing is skipped or defaulted; every problem is
collected and raised together as :class:`~wallet.errors.DecodeError`.
"""

import re
from typing import Callable, Iterable, List, TypeVar

from wallet.domain import Account, Favorite, Payment, PaymentStatus
from wallet.errors import DecodeError
from wallet.functional import Either, Left, Right, partition_results
from wallet.logging_setup import get_logger

logger = get_logger("wallet.codec")

T = TypeVar("T")

FIELD_SEP = ";"
RECORD_SEP = "\n"
LEGACY_RECORD_SEP = "|"

ACCOUNT_FIELDS = 3
PAYMENT_FIELDS = 5
FAVORITE_FIELDS = 5


def encode_account(a: Account, sep1: str = FIELD_SEP) -> str:
    return sep1.join((str(a.id), a.phone, str(a.balance)))


def encode_payment(p: Payment, sep1: str = FIELD_SEP) -> str:
    return sep1.join((p.id, str(p.account_id), str(p.amount), p.category, p.status.value))


def encode_favorite(f: Favorite, sep1: str = FIELD_SEP) -> str:
    return sep1.join((f.id, str(f.account_id), f.name, str(f.amount), f.category))


def _encode_all(records: Iterable[T], encode_one: Callable[[T, str], str], sep1: str, sep2: str) -> str:
    return "".join(encode_one(r, sep1) + sep2 for r in records)


def encode_accounts(accounts: Iterable[Account], sep1: str = FIELD_SEP, sep2: str = RECORD_SEP) -> str:
    return _encode_all(accounts, encode_account, sep1, sep2)


def encode_payments(payments: Iterable[Payment], sep1: str = FIELD_SEP, sep2: str = RECORD_SEP) -> str:
    return _encode_all(payments, encode_payment, sep1, sep2)


def encode_favorites(favorites: Iterable[Favorite], sep1: str = FIELD_SEP, sep2: str = RECORD_SEP) -> str:
    return _encode_all(favorites, encode_favorite, sep1, sep2)


_INT_RE = re.compile(r"[+-]?[0-9]+")


def _parse_int(raw: str, field: str, strict: bool) -> Either[str, int]:
    if _INT_RE.fullmatch(raw):
        return Right(int(raw))
    if strict:
        return Left(f"{field} is not an integer: {raw!r}")
    logger.warning("unparsable %s %r read as 0", field, raw)
    return Right(0)


def _split(chunk: str, sep1: str, kind: str, minimum: int) -> Either[str, List[str]]:
    fields = chunk.split(sep1)
    if len(fields) < minimum:
        return Left(f"{kind} record has {len(fields)} field(s), expected {minimum}: {chunk!r}")
    return Right(fields)


def decode_account(chunk: str, sep1: str = FIELD_SEP, strict: bool = False) -> Either[str, Account]:
    def build(fields: List[str]) -> Either[str, Account]:
        return _parse_int(fields[0], "account id", strict).bind(
            lambda account_id: _parse_int(fields[2], "balance", strict).bind(
                lambda balance: Right(Account(id=account_id, phone=fields[1], balance=balance))
            )
        )

    return _split(chunk, sep1, "account", ACCOUNT_FIELDS).bind(build)


def _parse_status(raw: str) -> Either[str, PaymentStatus]:
    try:
        return Right(PaymentStatus(raw))
    except ValueError:
        return Left(f"unknown payment status: {raw!r}")


def decode_payment(chunk: str, sep1: str = FIELD_SEP, strict: bool = False) -> Either[str, Payment]:
    def build(fields: List[str]) -> Either[str, Payment]:
        return _parse_int(fields[1], "account id", strict).bind(
            lambda account_id: _parse_int(fields[2], "amount", strict).bind(
                lambda amount: _parse_status(fields[4]).bind(
                    lambda status: Right(Payment(
                        id=fields[0],
                        account_id=account_id,
                        amount=amount,
                        category=fields[3],
                        status=status,
                    ))
                )
            )
        )

    return _split(chunk, sep1, "payment", PAYMENT_FIELDS).bind(build)


def decode_favorite(chunk: str, sep1: str = FIELD_SEP, strict: bool = False) -> Either[str, Favorite]:
    def build(fields: List[str]) -> Either[str, Favorite]:
        return _parse_int(fields[1], "account id", strict).bind(
            lambda account_id: _parse_int(fields[3], "amount", strict).bind(
                lambda amount: Right(Favorite(
                    id=fields[0],
                    account_id=account_id,
                    name=fields[2],
                    amount=amount,
                    category=fields[4],
                ))
            )
        )

    return _split(chunk, sep1, "favorite", FAVORITE_FIELDS).bind(build)


def _decode_all(
    content: str,
    decode_one: Callable[[str, str, bool], Either[str, T]],
    sep1: str,
    sep2: str,
    strict: bool,
) -> List[T]:
    # blank chunks (the one after the final separator, empty lines) carry no record
    chunks = [c[:-1] if c.endswith("\r") else c for c in content.split(sep2)]
    chunks = [c for c in chunks if c.strip()]
    records, problems = partition_results([decode_one(c, sep1, strict) for c in chunks])
    if problems:
        if strict:
            raise DecodeError(problems)
        for problem in problems:
            logger.warning("skipping malformed record: %s", problem)
    return records


def decode_accounts(content: str, sep1: str = FIELD_SEP, sep2: str = RECORD_SEP, strict: bool = False) -> List[Account]:
    return _decode_all(content, decode_account, sep1, sep2, strict)


def decode_payments(content: str, sep1: str = FIELD_SEP, sep2: str = RECORD_SEP, strict: bool = False) -> List[Payment]:
    return _decode_all(content, decode_payment, sep1, sep2, strict)


def decode_favorites(content: str, sep1: str = FIELD_SEP, sep2: str = RECORD_SEP, strict: bool = False) -> List[Favorite]:
    return _decode_all(content, decode_favorite, sep1, sep2, strict)

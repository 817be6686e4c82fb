from collections import defaultdict
from typing import Callable, Iterable, Iterator, Tuple

from wallet.domain import Payment, PaymentStatus

PaymentFilter = Callable[[Payment], bool]


def iter_payments(payments: Iterable[Payment], pred: PaymentFilter) -> Iterator[Payment]:
    for p in payments:
        if pred(p):
            yield p


def by_account(account_id: int) -> PaymentFilter:
    def _filter(p: Payment) -> bool:
        return p.account_id == account_id

    return _filter


def by_category(category: str) -> PaymentFilter:
    def _filter(p: Payment) -> bool:
        return p.category == category

    return _filter


def by_status(status: PaymentStatus) -> PaymentFilter:
    def _filter(p: Payment) -> bool:
        return p.status == status

    return _filter


def by_amount_range(min: int, max: int) -> PaymentFilter:
    def _filter(p: Payment) -> bool:
        return min <= p.amount <= max

    return _filter


def lazy_top_categories(payments: Iterable[Payment], k: int) -> Iterator[Tuple[str, int]]:
    """Yield the k categories with the largest spend, rejected payments excluded."""
    totals_by_category: dict[str, int] = defaultdict(int)

    for p in payments:
        if p.status != PaymentStatus.FAIL:
            totals_by_category[p.category] += p.amount

    ordered = sorted(totals_by_category.items(), key=lambda item: item[1], reverse=True)

    for category, total in ordered[: max(0, k)]:
        yield category, total

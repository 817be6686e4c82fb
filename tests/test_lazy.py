import types

from wallet.domain import Payment, PaymentStatus
from wallet.lazy import by_account, by_amount_range, by_category, by_status, iter_payments, lazy_top_categories


def make_payments():
    return (
        Payment("p1", 1, 100, "cafe"),
        Payment("p2", 1, 900, "rent", PaymentStatus.OK),
        Payment("p3", 2, 300, "cafe", PaymentStatus.FAIL),
        Payment("p4", 2, 50, "cafe"),
        Payment("p5", 2, 400, "auto"),
    )


def test_iter_payments_is_lazy():
    gen = iter_payments(make_payments(), by_account(2))

    assert isinstance(gen, types.GeneratorType)
    assert [p.id for p in gen] == ["p3", "p4", "p5"]


def test_filters():
    payments = make_payments()

    assert [p.id for p in iter_payments(payments, by_category("cafe"))] == ["p1", "p3", "p4"]
    assert [p.id for p in iter_payments(payments, by_status(PaymentStatus.FAIL))] == ["p3"]
    assert [p.id for p in iter_payments(payments, by_amount_range(100, 400))] == ["p1", "p3", "p5"]


def test_lazy_top_categories_excludes_rejected():
    top = list(lazy_top_categories(make_payments(), 2))

    assert top == [("rent", 900), ("auto", 400)]


def test_lazy_top_categories_bounds():
    assert list(lazy_top_categories(make_payments(), 0)) == []
    assert list(lazy_top_categories((), 3)) == []
    assert dict(lazy_top_categories(make_payments(), 10))["cafe"] == 150

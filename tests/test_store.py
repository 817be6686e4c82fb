import pytest

from wallet.domain import Account, Favorite, Payment, PaymentStatus
from wallet.errors import AccountNotFound, FavoriteNotFound, NotFoundError, PaymentNotFound
from wallet.store import LedgerStore


def test_counter_starts_at_one():
    store = LedgerStore()
    assert store.last_account_id == 0
    assert store.next_account_id() == 1
    assert store.next_account_id() == 2


def test_find_missing_records():
    store = LedgerStore()

    with pytest.raises(AccountNotFound) as exc:
        store.find_account(1)
    assert exc.value.details == {"account_id": 1}
    assert isinstance(exc.value, NotFoundError)

    with pytest.raises(PaymentNotFound):
        store.find_payment("p")
    with pytest.raises(FavoriteNotFound):
        store.find_favorite("f")


def test_safe_lookup():
    store = LedgerStore()
    store.add_account(Account(1, "+992000000001", 0))

    assert store.safe_account(1).is_some()
    assert store.safe_account(1).get_or_else(None).phone == "+992000000001"
    assert not store.safe_account(2).is_some()


def test_update_replaces_record():
    store = LedgerStore()
    before = store.add_account(Account(1, "+992000000001", 0))

    after = store.update_account(1, balance=10)

    assert before.balance == 0
    assert after.balance == 10
    assert store.find_account(1) == after


def test_update_missing_payment():
    with pytest.raises(PaymentNotFound):
        LedgerStore().update_payment("missing", status=PaymentStatus.FAIL)


def test_merge_account_counts_and_counter():
    store = LedgerStore()

    assert store.merge_account(Account(5, "+992000000005", 1)) is True
    assert store.merge_account(Account(5, "+992000000006", 2)) is False
    assert store.accounts() == (Account(5, "+992000000006", 2),)
    assert store.next_account_id() == 6


def test_merge_payment_and_favorite_overwrite_in_place():
    store = LedgerStore()
    store.add_payment(Payment("p1", 1, 10, "cafe"))
    store.add_payment(Payment("p2", 1, 20, "cafe"))
    store.add_favorite(Favorite("f1", 1, "Coffee", 10, "cafe"))

    store.merge_payment(Payment("p1", 2, 99, "auto", PaymentStatus.OK))
    store.merge_favorite(Favorite("f1", 2, "Fuel", 99, "auto"))

    assert [p.id for p in store.payments()] == ["p1", "p2"]
    assert store.find_payment("p1") == Payment("p1", 2, 99, "auto", PaymentStatus.OK)
    assert store.find_favorite("f1") == Favorite("f1", 2, "Fuel", 99, "auto")


def test_append_accounts_keeps_duplicates():
    store = LedgerStore()
    store.add_account(Account(1, "+992000000001", 0))

    assert store.append_accounts([Account(1, "+992000000001", 7), Account(3, "+992000000003", 0)]) == 2
    assert [a.id for a in store.accounts()] == [1, 1, 3]
    # lookups resolve to the first match
    assert store.find_account(1).balance == 0
    assert store.last_account_id == 3

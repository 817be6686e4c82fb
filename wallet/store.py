from dataclasses import replace
from typing import Iterable, List, Tuple

from wallet.domain import Account, Favorite, Payment
from wallet.errors import AccountNotFound, FavoriteNotFound, PaymentNotFound
from wallet.functional import Maybe, first_match


class LedgerStore:
    """In-memory accounts, payments and favorites plus the account id counter.

    Records are frozen; every change swaps the stored record for an updated
    copy, so anything handed out by the store is a snapshot. Collections are
    kept as lists in insertion order (exports preserve it, and the legacy
    single-file import may append accounts whose ids already exist).
    """

    def __init__(self):
        self._next_account_id = 0
        self._accounts: List[Account] = []
        self._payments: List[Payment] = []
        self._favorites: List[Favorite] = []

    # --- read views

    def accounts(self) -> Tuple[Account, ...]:
        return tuple(self._accounts)

    def payments(self) -> Tuple[Payment, ...]:
        return tuple(self._payments)

    def favorites(self) -> Tuple[Favorite, ...]:
        return tuple(self._favorites)

    @property
    def last_account_id(self) -> int:
        return self._next_account_id

    # --- lookups

    def safe_account(self, account_id: int) -> Maybe[Account]:
        return first_match(self._accounts, lambda a: a.id == account_id)

    def safe_payment(self, payment_id: str) -> Maybe[Payment]:
        return first_match(self._payments, lambda p: p.id == payment_id)

    def safe_favorite(self, favorite_id: str) -> Maybe[Favorite]:
        return first_match(self._favorites, lambda f: f.id == favorite_id)

    def find_account(self, account_id: int) -> Account:
        account = self.safe_account(account_id).get_or_else(None)
        if account is None:
            raise AccountNotFound(details={"account_id": account_id})
        return account

    def find_payment(self, payment_id: str) -> Payment:
        payment = self.safe_payment(payment_id).get_or_else(None)
        if payment is None:
            raise PaymentNotFound(details={"payment_id": payment_id})
        return payment

    def find_favorite(self, favorite_id: str) -> Favorite:
        favorite = self.safe_favorite(favorite_id).get_or_else(None)
        if favorite is None:
            raise FavoriteNotFound(details={"favorite_id": favorite_id})
        return favorite

    def phone_registered(self, phone: str) -> bool:
        return any(a.phone == phone for a in self._accounts)

    # --- mutation

    def next_account_id(self) -> int:
        self._next_account_id += 1
        return self._next_account_id

    def _bump_counter(self, account_id: int) -> None:
        self._next_account_id = max(self._next_account_id, account_id)

    def add_account(self, account: Account) -> Account:
        self._accounts.append(account)
        return account

    def add_payment(self, payment: Payment) -> Payment:
        self._payments.append(payment)
        return payment

    def add_favorite(self, favorite: Favorite) -> Favorite:
        self._favorites.append(favorite)
        return favorite

    def update_account(self, account_id: int, **changes) -> Account:
        idx = self._index(self._accounts, account_id, AccountNotFound, "account_id")
        self._accounts[idx] = replace(self._accounts[idx], **changes)
        return self._accounts[idx]

    def update_payment(self, payment_id: str, **changes) -> Payment:
        idx = self._index(self._payments, payment_id, PaymentNotFound, "payment_id")
        self._payments[idx] = replace(self._payments[idx], **changes)
        return self._payments[idx]

    @staticmethod
    def _index(records: list, record_id, not_found, key: str) -> int:
        for idx, record in enumerate(records):
            if record.id == record_id:
                return idx
        raise not_found(details={key: record_id})

    # --- import

    def merge_account(self, incoming: Account) -> bool:
        """Overwrite phone and balance of a matching account or append it.

        Returns True when the account was appended.
        """
        if self.safe_account(incoming.id).is_some():
            self.update_account(incoming.id, phone=incoming.phone, balance=incoming.balance)
            return False
        self._accounts.append(incoming)
        self._bump_counter(incoming.id)
        return True

    def merge_payment(self, incoming: Payment) -> bool:
        if self.safe_payment(incoming.id).is_some():
            self.update_payment(
                incoming.id,
                account_id=incoming.account_id,
                amount=incoming.amount,
                category=incoming.category,
                status=incoming.status,
            )
            return False
        self._payments.append(incoming)
        return True

    def merge_favorite(self, incoming: Favorite) -> bool:
        if self.safe_favorite(incoming.id).is_some():
            idx = self._index(self._favorites, incoming.id, FavoriteNotFound, "favorite_id")
            self._favorites[idx] = replace(
                self._favorites[idx],
                account_id=incoming.account_id,
                name=incoming.name,
                amount=incoming.amount,
                category=incoming.category,
            )
            return False
        self._favorites.append(incoming)
        return True

    def append_accounts(self, accounts: Iterable[Account]) -> int:
        """Append accounts as they are, without matching on id."""
        count = 0
        for account in accounts:
            self._accounts.append(account)
            self._bump_counter(account.id)
            count += 1
        return count

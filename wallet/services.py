import os
from typing import List, Optional, Tuple

from wallet import storage
from wallet.codec import (
    FIELD_SEP,
    LEGACY_RECORD_SEP,
    RECORD_SEP,
    decode_accounts,
    decode_favorites,
    decode_payments,
    encode_accounts,
    encode_favorites,
    encode_payments,
)
from wallet.config import Settings
from wallet.domain import Account, Favorite, Payment, PaymentStatus
from wallet.errors import AmountMustBePositive, InsufficientBalance, PhoneAlreadyRegistered
from wallet.events import (
    ACCOUNT_REGISTERED,
    BALANCE_ALERT,
    FAVORITE_CREATED,
    FUNDS_DEPOSITED,
    LEDGER_IMPORTED,
    PAYMENT_CREATED,
    PAYMENT_REJECTED,
    EventBus,
)
from wallet.ids import IdFactory, new_id
from wallet.logging_setup import get_logger
from wallet.store import LedgerStore

logger = get_logger("wallet.services")

ACCOUNTS_FILE = "accounts.dump"
PAYMENTS_FILE = "payments.dump"
FAVORITES_FILE = "favorites.dump"


def import_accounts(path: str, sep1: str = FIELD_SEP, sep2: str = RECORD_SEP, strict: bool = False) -> List[Account]:
    """Decode the accounts stored at ``path``; a missing file means no accounts."""
    if not storage.exists(path):
        return []
    return decode_accounts(storage.read_all(path), sep1, sep2, strict=strict)


def import_payments(path: str, sep1: str = FIELD_SEP, sep2: str = RECORD_SEP, strict: bool = False) -> List[Payment]:
    if not storage.exists(path):
        return []
    return decode_payments(storage.read_all(path), sep1, sep2, strict=strict)


def import_favorites(path: str, sep1: str = FIELD_SEP, sep2: str = RECORD_SEP, strict: bool = False) -> List[Favorite]:
    if not storage.exists(path):
        return []
    return decode_favorites(storage.read_all(path), sep1, sep2, strict=strict)


class WalletService:
    """Public operations over a :class:`LedgerStore`.

    Each operation either returns its result or raises one
    :class:`~wallet.errors.WalletError` (``OSError`` for file access); those
    errors are raised before the store is touched. Successful mutations are
    published on ``bus`` after the store changes, so an exception from a
    subscribed handler reaches the caller with the mutation already applied.

    Not thread safe: callers sharing a service across threads must hold one
    lock around every call.
    """

    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        id_factory: IdFactory = new_id,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self._store = store if store is not None else LedgerStore()
        self._new_id = id_factory
        self.bus = bus if bus is not None else EventBus()
        self.settings = settings if settings is not None else Settings()

    # --- views

    def accounts(self) -> Tuple[Account, ...]:
        return self._store.accounts()

    def payments(self) -> Tuple[Payment, ...]:
        return self._store.payments()

    def favorites(self) -> Tuple[Favorite, ...]:
        return self._store.favorites()

    def find_account_by_id(self, account_id: int) -> Account:
        return self._store.find_account(account_id)

    def find_payment_by_id(self, payment_id: str) -> Payment:
        return self._store.find_payment(payment_id)

    def find_favorite_by_id(self, favorite_id: str) -> Favorite:
        return self._store.find_favorite(favorite_id)

    # --- ledger operations

    def register_account(self, phone: str) -> Account:
        if self._store.phone_registered(phone):
            logger.warning("phone %s is already registered", phone)
            raise PhoneAlreadyRegistered(details={"phone": phone})

        account = self._store.add_account(Account(id=self._store.next_account_id(), phone=phone, balance=0))
        logger.info("registered account %s for %s", account.id, phone)
        self.bus.publish(ACCOUNT_REGISTERED, {"account_id": account.id, "phone": phone})
        return account

    def deposit(self, account_id: int, amount: int) -> Account:
        # zero is a valid amount; only negatives are refused
        if amount < 0:
            logger.warning("refusing deposit of %s to account %s", amount, account_id)
            raise AmountMustBePositive(details={"amount": amount})

        account = self._store.find_account(account_id)
        account = self._store.update_account(account_id, balance=account.balance + amount)
        logger.info("deposited %s to account %s, balance %s", amount, account_id, account.balance)
        self.bus.publish(FUNDS_DEPOSITED, {"account_id": account_id, "amount": amount, "balance": account.balance})
        return account

    def pay(self, account_id: int, amount: int, category: str) -> Payment:
        if amount < 0:
            logger.warning("refusing payment of %s from account %s", amount, account_id)
            raise AmountMustBePositive(details={"amount": amount})

        account = self._store.find_account(account_id)
        if account.balance < amount:
            logger.warning(
                "account %s balance %s is below payment amount %s", account_id, account.balance, amount
            )
            raise InsufficientBalance(
                details={"account_id": account_id, "balance": account.balance, "amount": amount}
            )

        account = self._store.update_account(account_id, balance=account.balance - amount)
        payment = self._store.add_payment(Payment(
            id=self._new_id(),
            account_id=account_id,
            amount=amount,
            category=category,
            status=PaymentStatus.INPROGRESS,
        ))
        logger.info("payment %s: %s from account %s (%s)", payment.id, amount, account_id, category)
        self.bus.publish(PAYMENT_CREATED, {
            "payment_id": payment.id,
            "account_id": account_id,
            "amount": amount,
            "category": category,
        })
        self.bus.publish(BALANCE_ALERT, {
            "account_id": account_id,
            "balance": account.balance,
            "threshold": self.settings.balance_threshold,
        })
        return payment

    def reject(self, payment_id: str) -> Payment:
        """Mark a payment FAIL and return its amount to the account.

        Rejecting a payment that is already FAIL changes nothing, so the
        amount is credited back at most once.
        """
        payment = self._store.find_payment(payment_id)
        if payment.status == PaymentStatus.FAIL:
            logger.info("payment %s is already rejected", payment_id)
            return payment

        account = self._store.find_account(payment.account_id)
        payment = self._store.update_payment(payment_id, status=PaymentStatus.FAIL)
        account = self._store.update_account(account.id, balance=account.balance + payment.amount)
        logger.info(
            "rejected payment %s, credited %s back to account %s", payment_id, payment.amount, account.id
        )
        self.bus.publish(PAYMENT_REJECTED, {
            "payment_id": payment_id,
            "account_id": account.id,
            "amount": payment.amount,
            "balance": account.balance,
        })
        return payment

    def repeat(self, payment_id: str) -> Payment:
        source = self._store.find_payment(payment_id)
        return self.pay(source.account_id, source.amount, source.category)

    def favorite_payment(self, payment_id: str, name: str) -> Favorite:
        payment = self._store.find_payment(payment_id)
        favorite = self._store.add_favorite(Favorite(
            id=self._new_id(),
            account_id=payment.account_id,
            name=name,
            amount=payment.amount,
            category=payment.category,
        ))
        logger.info("saved payment %s as favorite %s (%s)", payment_id, favorite.id, name)
        self.bus.publish(FAVORITE_CREATED, {"favorite_id": favorite.id, "payment_id": payment_id, "name": name})
        return favorite

    def pay_from_favorite(self, favorite_id: str) -> Payment:
        favorite = self._store.find_favorite(favorite_id)
        return self.pay(favorite.account_id, favorite.amount, favorite.category)

    # --- string export

    def export_accounts_to_string(self, sep1: str, sep2: str) -> str:
        return encode_accounts(self._store.accounts(), sep1, sep2)

    def export_payments_to_string(self, sep1: str, sep2: str) -> str:
        return encode_payments(self._store.payments(), sep1, sep2)

    def export_favorites_to_string(self, sep1: str, sep2: str) -> str:
        return encode_favorites(self._store.favorites(), sep1, sep2)

    # --- single file (accounts only)

    def export_to_file(self, path: str) -> None:
        storage.write_all(path, self.export_accounts_to_string(FIELD_SEP, LEGACY_RECORD_SEP))
        logger.info("exported %d account(s) to %s", len(self._store.accounts()), path)

    def import_from_file(self, path: str, strict: Optional[bool] = None) -> int:
        """Append every account found in ``path``.

        Accounts are not matched against existing ids, so importing the same
        file twice duplicates them. Returns the number of accounts appended.
        """
        strict = self.settings.strict_decode if strict is None else strict
        content = storage.read_all(path)
        count = self._store.append_accounts(
            decode_accounts(content, FIELD_SEP, LEGACY_RECORD_SEP, strict=strict)
        )
        logger.info("imported %d account(s) from %s", count, path)
        self.bus.publish(LEDGER_IMPORTED, {"source": path, "accounts": count, "payments": 0, "favorites": 0})
        return count

    # --- directory dump

    def export(self, directory: str) -> None:
        """Write one dump file per non-empty collection into ``directory``."""
        directory = os.path.normpath(directory)
        dumps = (
            (ACCOUNTS_FILE, self._store.accounts(), encode_accounts),
            (PAYMENTS_FILE, self._store.payments(), encode_payments),
            (FAVORITES_FILE, self._store.favorites(), encode_favorites),
        )
        for file_name, records, encode in dumps:
            if not records:
                continue
            path = os.path.join(directory, file_name)
            storage.write_all(path, encode(records, FIELD_SEP, RECORD_SEP))
            logger.info("exported %d record(s) to %s", len(records), path)

    def import_(self, directory: str, strict: Optional[bool] = None) -> dict:
        """Merge the dump files found in ``directory`` into the store.

        Records whose id is already known overwrite the stored record in
        place; the rest are appended. Missing files are skipped. In strict
        mode all three files are decoded before anything is merged, so a
        ``DecodeError`` leaves the store unchanged.
        """
        strict = self.settings.strict_decode if strict is None else strict
        directory = os.path.normpath(directory)

        accounts = import_accounts(os.path.join(directory, ACCOUNTS_FILE), strict=strict)
        payments = import_payments(os.path.join(directory, PAYMENTS_FILE), strict=strict)
        favorites = import_favorites(os.path.join(directory, FAVORITES_FILE), strict=strict)

        added = {
            "accounts": sum(self._store.merge_account(a) for a in accounts),
            "payments": sum(self._store.merge_payment(p) for p in payments),
            "favorites": sum(self._store.merge_favorite(f) for f in favorites),
        }
        logger.info(
            "imported %d account(s), %d payment(s), %d favorite(s) from %s (%s new)",
            len(accounts), len(payments), len(favorites), directory, added,
        )
        self.bus.publish(LEDGER_IMPORTED, {
            "source": directory,
            "accounts": len(accounts),
            "payments": len(payments),
            "favorites": len(favorites),
        })
        return added

"""
Exceptions raised by ledger operations.

Exception Hierarchy:
    WalletError
    ├── PhoneAlreadyRegistered - registration with a phone already in use
    ├── AmountMustBePositive - negative amount for deposit or pay
    ├── InsufficientBalance - pay would drive the balance negative
    ├── NotFoundError
    │   ├── AccountNotFound
    │   ├── PaymentNotFound
    │   └── FavoriteNotFound
    └── DecodeError - strict decoding found malformed records

File system failures are not wrapped; ``OSError`` reaches the caller as is.
"""

from typing import Any, Dict, List, Optional


class WalletError(Exception):
    default_error_code: str = "WALLET_ERROR"
    default_message: str = "wallet operation failed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return self.default_error_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": dict(self.details),
        }


class PhoneAlreadyRegistered(WalletError):
    default_error_code = "PHONE_REGISTERED"
    default_message = "phone is already registered"


class AmountMustBePositive(WalletError):
    default_error_code = "AMOUNT_MUST_BE_POSITIVE"
    default_message = "amount must not be negative"


class InsufficientBalance(WalletError):
    default_error_code = "INSUFFICIENT_BALANCE"
    default_message = "account doesn't have enough balance"


class NotFoundError(WalletError):
    default_error_code = "NOT_FOUND"
    default_message = "record not found"


class AccountNotFound(NotFoundError):
    default_error_code = "ACCOUNT_NOT_FOUND"
    default_message = "account not found"


class PaymentNotFound(NotFoundError):
    default_error_code = "PAYMENT_NOT_FOUND"
    default_message = "payment not found"


class FavoriteNotFound(NotFoundError):
    default_error_code = "FAVORITE_NOT_FOUND"
    default_message = "favorite not found"


class DecodeError(WalletError):
    """Raised by strict decoding with every problem found in the input.

    ``problems`` holds one human readable line per rejected record, so a
    caller sees the whole file's damage at once rather than the first hit.
    """

    default_error_code = "DECODE_ERROR"
    default_message = "malformed records in input"

    def __init__(self, problems: List[str], message: Optional[str] = None):
        self.problems = list(problems)
        super().__init__(
            message or f"{len(self.problems)} malformed record(s) in input",
            details={"problems": self.problems},
        )

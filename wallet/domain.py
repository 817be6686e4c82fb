from dataclasses import dataclass
from enum import Enum


class PaymentStatus(str, Enum):
    OK = "OK"
    FAIL = "FAIL"
    INPROGRESS = "INPROGRESS"


@dataclass(frozen=True)
class Account:
    id: int
    phone: str
    balance: int     # minor units (cents, tiyn, ...)


@dataclass(frozen=True)
class Payment:
    id: str
    account_id: int  # owning account
    amount: int
    category: str    # free-form label, e.g. "groceries"
    status: PaymentStatus = PaymentStatus.INPROGRESS


# A payment template saved under a display name
@dataclass(frozen=True)
class Favorite:
    id: str
    account_id: int
    name: str
    amount: int
    category: str


@dataclass(frozen=True)
class Progress:
    part: int
    result: int

from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'Event', 'EventBus',
    'ACCOUNT_REGISTERED', 'FUNDS_DEPOSITED', 'PAYMENT_CREATED', 'PAYMENT_REJECTED',
    'FAVORITE_CREATED', 'LEDGER_IMPORTED', 'BALANCE_ALERT',
    'check_balance_handler', 'register_default_handlers',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in list(handlers)]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)


ACCOUNT_REGISTERED = "ACCOUNT_REGISTERED"
FUNDS_DEPOSITED = "FUNDS_DEPOSITED"
PAYMENT_CREATED = "PAYMENT_CREATED"
PAYMENT_REJECTED = "PAYMENT_REJECTED"
FAVORITE_CREATED = "FAVORITE_CREATED"
LEDGER_IMPORTED = "LEDGER_IMPORTED"
BALANCE_ALERT = "BALANCE_ALERT"


def check_balance_handler(event: Event, payload: dict) -> dict:
    balance = payload.get("balance", 0)
    threshold = payload.get("threshold", 0)

    if threshold > 0 and balance < threshold:
        return {
            "alert": f"Balance alert: account {payload.get('account_id')} has {balance}, below threshold {threshold}",
            "account_id": payload.get("account_id"),
            "balance": balance,
            "threshold": threshold,
        }
    return {}


def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(BALANCE_ALERT, check_balance_handler)
    return bus

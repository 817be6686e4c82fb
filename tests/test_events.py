from datetime import datetime

import pytest

from wallet.config import Settings
from wallet.events import (
    ACCOUNT_REGISTERED,
    BALANCE_ALERT,
    FAVORITE_CREATED,
    FUNDS_DEPOSITED,
    LEDGER_IMPORTED,
    PAYMENT_CREATED,
    PAYMENT_REJECTED,
    Event,
    EventBus,
    check_balance_handler,
    register_default_handlers,
)
from wallet.services import WalletService


def recorder(bus, name):
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(payload)
        return {"seen": len(seen)}

    bus.subscribe(name, handler)
    return seen


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = recorder(bus, PAYMENT_CREATED)

    results = bus.publish(PAYMENT_CREATED, {"amount": 50})

    assert results == [{"seen": 1}]
    assert seen == [{"amount": 50}]


def test_publish_without_subscribers():
    assert EventBus().publish(PAYMENT_CREATED, {}) == []


def test_event_bus_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event: Event, payload: dict) -> dict:
        calls.append(payload)
        return {}

    bus.subscribe(PAYMENT_REJECTED, handler)
    bus.publish(PAYMENT_REJECTED, {"amount": 100})
    bus.unsubscribe(PAYMENT_REJECTED, handler)
    bus.publish(PAYMENT_REJECTED, {"amount": 200})

    assert len(calls) == 1


def test_check_balance_handler_pure():
    event = Event(name=BALANCE_ALERT, ts=datetime.now().isoformat(), payload={})
    payload = {"account_id": 1, "balance": 50, "threshold": 100}

    result1 = check_balance_handler(event, payload)
    result2 = check_balance_handler(event, payload)

    assert result1 == result2
    assert "Balance alert" in result1["alert"]
    assert payload == {"account_id": 1, "balance": 50, "threshold": 100}


def test_check_balance_handler_no_alert():
    event = Event(name=BALANCE_ALERT, ts=datetime.now().isoformat(), payload={})

    assert check_balance_handler(event, {"balance": 500, "threshold": 100}) == {}
    assert check_balance_handler(event, {"balance": 0, "threshold": 0}) == {}


def test_service_publishes_ledger_events(tmp_path):
    svc = WalletService()
    registered = recorder(svc.bus, ACCOUNT_REGISTERED)
    created = recorder(svc.bus, PAYMENT_CREATED)
    rejected = recorder(svc.bus, PAYMENT_REJECTED)
    favorites = recorder(svc.bus, FAVORITE_CREATED)
    imported = recorder(svc.bus, LEDGER_IMPORTED)

    acc = svc.register_account("+992000000001")
    svc.deposit(acc.id, 1000)
    payment = svc.pay(acc.id, 100, "cafe")
    svc.favorite_payment(payment.id, "Coffee")
    svc.reject(payment.id)
    svc.reject(payment.id)
    svc.import_(str(tmp_path))

    assert registered == [{"account_id": 1, "phone": "+992000000001"}]
    assert created[0]["amount"] == 100
    assert len(rejected) == 1
    assert rejected[0]["balance"] == 1000
    assert favorites[0]["name"] == "Coffee"
    assert imported[0]["accounts"] == 0


def test_low_balance_alert_after_payment():
    svc = WalletService(settings=Settings(balance_threshold=500))
    register_default_handlers(svc.bus)
    alerts = []
    svc.bus.subscribe(BALANCE_ALERT, lambda event, payload: alerts.append(check_balance_handler(event, payload)) or {})

    acc = svc.register_account("+992000000001")
    svc.deposit(acc.id, 1000)
    svc.pay(acc.id, 100, "cafe")
    svc.pay(acc.id, 500, "rent")

    assert alerts[0] == {}
    assert alerts[1]["balance"] == 400
    assert alerts[1]["threshold"] == 500


def test_failing_handler_surfaces_after_deposit():
    svc = WalletService()
    acc = svc.register_account("+992000000001")

    def broken(event: Event, payload: dict) -> dict:
        raise RuntimeError("handler down")

    svc.bus.subscribe(FUNDS_DEPOSITED, broken)

    with pytest.raises(RuntimeError):
        svc.deposit(acc.id, 300)
    assert svc.find_account_by_id(acc.id).balance == 300

from leaveflow.schemas.leave import LeaveType
from leaveflow.services.ledger import BalanceLedger
from leaveflow.services.store import InMemoryStore


def test_balance_created_lazily_with_default_allowance():
    store = InMemoryStore()
    ledger = BalanceLedger(store, allowance=12)

    assert ledger.find("1") is None
    balance = ledger.get_or_create("1")
    assert balance.paid == balance.sick == balance.casual == balance.miscellaneous == 12
    assert balance.max_paid == 12
    assert len(store.load_balances()) == 1

    # second call reuses the stored record
    ledger.get_or_create("1")
    assert len(store.load_balances()) == 1


def test_deduct_subtracts_days():
    ledger = BalanceLedger(InMemoryStore(), allowance=12)
    ledger.get_or_create("1")
    balance = ledger.deduct("1", LeaveType.PAID, 3)
    assert balance.paid == 9
    assert ledger.find("1").sick == 12


def test_deduct_clamps_at_zero():
    ledger = BalanceLedger(InMemoryStore(), allowance=12)
    ledger.get_or_create("1")
    assert ledger.deduct("1", LeaveType.CASUAL, 20).casual == 0


def test_restore_clamps_at_maximum():
    ledger = BalanceLedger(InMemoryStore(), allowance=12)
    ledger.get_or_create("1")
    ledger.deduct("1", LeaveType.SICK, 2)
    assert ledger.restore("1", LeaveType.SICK, 5).sick == 12


def test_balances_of_other_users_untouched():
    ledger = BalanceLedger(InMemoryStore(), allowance=12)
    ledger.get_or_create("1")
    ledger.get_or_create("4")
    ledger.deduct("4", LeaveType.MISCELLANEOUS, 1)
    assert ledger.find("1").miscellaneous == 12
    assert ledger.find("4").miscellaneous == 11

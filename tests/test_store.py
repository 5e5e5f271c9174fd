import pytest

from leaveflow.core.exceptions import StoreConflict
from leaveflow.models.store_entry import StoreEntry
from leaveflow.schemas.leave import LeaveBalance
from leaveflow.services.store import BALANCES_KEY, USERS_KEY, InMemoryStore, SqlStore


def test_absent_key_is_an_empty_collection(db_session):
    store = SqlStore(db_session)
    assert store.load_users() == []
    assert store.load_applications() == []


def test_collection_round_trip(db_session, team):
    store = SqlStore(db_session)
    store.save_users(team)
    store.commit()

    assert SqlStore(db_session).load_users() == team
    entry = db_session.get(StoreEntry, USERS_KEY)
    assert entry.version == 1
    assert entry.payload[0]["id"] == "1"


def test_each_write_bumps_version(db_session, team):
    store = SqlStore(db_session)
    store.save_users(team)
    store.commit()

    store.load_users()
    store.save_users(team[:2])
    store.commit()

    db_session.expire_all()
    assert db_session.get(StoreEntry, USERS_KEY).version == 2
    assert len(SqlStore(db_session).load_users()) == 2


def test_concurrent_writer_is_detected(db_session):
    seed = SqlStore(db_session)
    seed.save_balances([LeaveBalance.fresh("1", 12)])
    seed.commit()

    first, second = SqlStore(db_session), SqlStore(db_session)
    mine = first.load_balances()
    theirs = second.load_balances()

    mine[0] = mine[0].model_copy(update={"paid": 9})
    first.save_balances(mine)
    first.commit()

    theirs[0] = theirs[0].model_copy(update={"paid": 7})
    with pytest.raises(StoreConflict) as exc_info:
        second.save_balances(theirs)
    second.rollback()

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"collection": BALANCES_KEY}
    assert SqlStore(db_session).load_balances()[0].paid == 9


def test_blind_write_uses_current_version(db_session, team):
    SqlStore(db_session).save_users(team)
    # nothing read beforehand by this store
    store = SqlStore(db_session)
    store.save_users(team[:1])
    store.commit()
    assert [u.id for u in SqlStore(db_session).load_users()] == ["1"]


def test_clear_keeps_key_as_empty_collection(db_session, team):
    store = SqlStore(db_session)
    store.save_users(team)
    store.clear(USERS_KEY)
    store.commit()
    assert SqlStore(db_session).load_users() == []


def test_in_memory_store_returns_copies(team):
    store = InMemoryStore()
    store.save_users(team)
    users = store.load_users()
    users.pop()
    assert len(store.load_users()) == len(team)


def test_in_memory_rollback_restores_unit_of_work_start(team):
    store = InMemoryStore()
    store.save_users(team)

    store.begin()
    store.save_users(team[:1])
    store.save_balances([LeaveBalance.fresh("1", 12)])
    store.rollback()

    assert store.load_users() == team
    assert store.load_balances() == []


def test_in_memory_commit_keeps_changes(team):
    store = InMemoryStore()
    store.begin()
    store.save_users(team)
    store.commit()
    # nothing left to roll back to
    store.rollback()
    assert store.load_users() == team

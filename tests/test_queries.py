import pytest
from datetime import date, datetime, timedelta, timezone

from leaveflow.core.exceptions import NotFound
from leaveflow.schemas.leave import LeaveApplication, LeaveBalance, LeaveStatus, LeaveType
from leaveflow.schemas.user import ManagerAssignment, User, UserRole
from leaveflow.services.ledger import BalanceLedger
from leaveflow.services.queries import (
    LeaveQueryService,
    dashboard_notices,
    emergency_usage,
    leave_stats,
    manager_queue,
    recent_applications,
    team_calendar,
    upcoming_leaves,
    usage_by_type,
)
from tests.conftest import FIXED_NOW

TODAY = FIXED_NOW.date()


def _application(app_id, user_id="1", start=None, days=1, status=LeaveStatus.APPROVED,
                 leave_type=LeaveType.PAID, is_emergency=False, applied_days_ago=1, recalled_days_ago=None):
    start = start or TODAY + timedelta(days=5)
    return LeaveApplication(
        id=app_id,
        user_id=user_id,
        leave_type=leave_type,
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        status=status,
        reason="Existing leave request",
        applied_on=FIXED_NOW - timedelta(days=applied_days_ago),
        is_emergency=is_emergency,
        recalled_on=FIXED_NOW - timedelta(days=recalled_days_ago) if recalled_days_ago is not None else None,
    )


@pytest.fixture
def service(store, clock):
    return LeaveQueryService(store, ledger=BalanceLedger(store, allowance=12), clock=clock)


def test_upcoming_leaves_only_approved_within_window():
    applications = [
        _application("later", start=TODAY + timedelta(days=20)),
        _application("soon", start=TODAY + timedelta(days=2)),
        _application("too-far", start=TODAY + timedelta(days=45)),
        _application("pending", start=TODAY + timedelta(days=3), status=LeaveStatus.PENDING),
        _application("past", start=TODAY - timedelta(days=3)),
    ]
    assert [a.id for a in upcoming_leaves(applications, TODAY, 30)] == ["soon", "later"]


def test_recent_applications_newest_first_and_limited():
    applications = [_application(f"a{i}", applied_days_ago=i) for i in range(1, 8)]
    assert [a.id for a in recent_applications(applications, 5)] == ["a1", "a2", "a3", "a4", "a5"]


def test_team_calendar_covers_the_whole_month():
    applications = [
        _application("a1", user_id="1", start=date(2030, 6, 10), days=3),
        _application("a4", user_id="4", start=date(2030, 6, 11), leave_type=LeaveType.SICK),
        _application("p5", user_id="5", start=date(2030, 6, 11), status=LeaveStatus.PENDING),
        _application("r6", user_id="6", start=date(2030, 6, 20), status=LeaveStatus.RECALLED),
    ]
    days = team_calendar(applications, 2030, 6, today=TODAY)

    assert len(days) == 30
    by_day = {d.date.day: d for d in days}
    assert by_day[11].has_leave and by_day[11].user_ids == ["1", "4"]
    assert by_day[10].leave_type == LeaveType.PAID
    assert not by_day[20].has_leave
    assert by_day[12].is_today
    assert sum(d.is_today for d in days) == 1


def test_team_calendar_for_one_user():
    applications = [
        _application("a1", user_id="1", start=date(2030, 2, 3)),
        _application("a4", user_id="4", start=date(2030, 2, 4)),
    ]
    days = team_calendar(applications, 2030, 2, user_id="4")
    assert len(days) == 28
    assert [d.date.day for d in days if d.has_leave] == [4]


def test_emergency_usage_counts_windows():
    applications = [
        _application("e1", is_emergency=True, applied_days_ago=3, start=TODAY - timedelta(days=3)),
        _application("e2", is_emergency=True, applied_days_ago=40, start=TODAY - timedelta(days=40)),
        _application("e3", is_emergency=True, applied_days_ago=400, start=TODAY - timedelta(days=400)),
        _application("regular", applied_days_ago=2),
    ]
    usage = emergency_usage(applications, FIXED_NOW, 30)
    assert usage.last_30_days == 1
    assert usage.last_year == 2
    assert usage.most_recent == TODAY - timedelta(days=3)


def test_emergency_usage_on_leap_day():
    leap_day = datetime(2028, 2, 29, 12, 0, tzinfo=timezone.utc)
    usage = emergency_usage([], leap_day)
    assert usage.last_year == 0
    assert usage.most_recent is None


def test_leave_stats():
    applications = [
        _application("a1"),
        _application("a2", status=LeaveStatus.PENDING),
        _application("a3", status=LeaveStatus.REJECTED),
        _application("a4", status=LeaveStatus.RECALLED, is_emergency=True),
    ]
    stats = leave_stats(applications)
    assert (stats.total_requested, stats.approved, stats.rejected, stats.pending, stats.emergency) == (4, 1, 1, 1, 1)


def test_manager_queue_emergency_first_then_newest():
    applications = [
        _application("old", status=LeaveStatus.PENDING, applied_days_ago=5),
        _application("new", status=LeaveStatus.PENDING, applied_days_ago=1),
        _application("urgent", status=LeaveStatus.PENDING, applied_days_ago=9, is_emergency=True),
        _application("done", status=LeaveStatus.APPROVED, applied_days_ago=2),
        _application("no", status=LeaveStatus.REJECTED, applied_days_ago=3),
        _application("back", status=LeaveStatus.RECALLED, applied_days_ago=20, recalled_days_ago=1),
    ]
    queue = manager_queue(applications)
    assert [a.id for a in queue.pending] == ["urgent", "new", "old"]
    assert [a.id for a in queue.recently_processed] == ["done", "no"]
    assert [a.id for a in queue.recently_recalled] == ["back"]


def test_usage_by_type_counts_approved_days():
    applications = [
        _application("p1", days=3),
        _application("p2", days=1, start=TODAY + timedelta(days=20)),
        _application("s1", days=2, leave_type=LeaveType.SICK, status=LeaveStatus.PENDING),
        _application("c1", leave_type=LeaveType.CASUAL, status=LeaveStatus.RECALLED),
    ]
    usage = {u.leave_type: u for u in usage_by_type(applications, LeaveBalance.fresh("1", 12))}

    assert list(usage) == [LeaveType.PAID, LeaveType.SICK, LeaveType.CASUAL, LeaveType.MISCELLANEOUS]
    assert (usage[LeaveType.PAID].used_days, usage[LeaveType.PAID].max_days) == (4, 12)
    assert usage[LeaveType.PAID].utilization == 33
    assert usage[LeaveType.SICK].used_days == 0
    assert usage[LeaveType.CASUAL].utilization == 0


def test_usage_by_type_without_balance():
    usage = usage_by_type([_application("p1", days=2)], None)
    assert usage[0].used_days == 2
    assert (usage[0].max_days, usage[0].utilization) == (0, 0)


def test_dashboard_notices():
    manager = User(id="3", name="Mike Johnson", role=UserRole.MANAGER, email="mike@example.com")
    balance = LeaveBalance.fresh("1", 12).model_copy(update={"paid": 2})
    applications = [
        _application("p1", status=LeaveStatus.PENDING),
        _application("r1", status=LeaveStatus.RECALLED, recalled_days_ago=2),
        _application("r2", status=LeaveStatus.RECALLED, recalled_days_ago=10),
    ]
    assert dashboard_notices(applications, balance, manager, FIXED_NOW) == [
        "You have pending leave applications awaiting approval.",
        "You have only a few paid leaves remaining. Plan your leaves wisely.",
        "Your leave requests will be reviewed by Mike Johnson.",
        "You have 1 recently recalled leave(s). Your leave balance has been updated.",
    ]


def test_dashboard_notices_without_manager():
    notices = dashboard_notices([], LeaveBalance.fresh("1", 12), None, FIXED_NOW)
    assert notices == ["You don't have a manager assigned yet. Contact admin for help."]


def test_list_applications_filters(service, store):
    store.save_applications([
        _application("a1", user_id="1", applied_days_ago=3),
        _application("a2", user_id="1", status=LeaveStatus.PENDING, applied_days_ago=1),
        _application("a3", user_id="4"),
    ])
    assert [a.id for a in service.list_applications(user_id="1")] == ["a2", "a1"]
    assert [a.id for a in service.list_applications(status=LeaveStatus.PENDING)] == ["a2"]


def test_get_application_not_found(service):
    with pytest.raises(NotFound):
        service.get_application("missing")


def test_balance_for_unknown_user(service):
    with pytest.raises(NotFound):
        service.balance_for("404")


def test_manager_queue_scoped_to_team(service, store):
    store.save_manager_assignments([ManagerAssignment(manager_id="3", employee_ids=["4"])])
    store.save_applications([
        _application("mine", user_id="4", status=LeaveStatus.PENDING),
        _application("other", user_id="5", status=LeaveStatus.PENDING),
    ])
    assert [a.id for a in service.manager_queue("3").pending] == ["mine"]
    assert len(service.manager_queue().pending) == 2


def test_dashboard_for_user(service, store):
    store.save_manager_assignments([ManagerAssignment(manager_id="3", employee_ids=["1"])])
    store.save_applications([
        _application("up", user_id="1", start=TODAY + timedelta(days=3)),
        _application("p1", user_id="1", status=LeaveStatus.PENDING, applied_days_ago=0),
        _application("x", user_id="4"),
    ])

    dashboard = service.dashboard("1")
    assert dashboard.balance.paid == 12
    assert [a.id for a in dashboard.upcoming] == ["up"]
    assert {a.id for a in dashboard.recent} == {"up", "p1"}
    assert dashboard.stats.total_requested == 2
    assert [(u.leave_type, u.used_days, u.utilization) for u in dashboard.usage][0] == (LeaveType.PAID, 1, 8)
    assert "Your leave requests will be reviewed by Mike Johnson." in dashboard.notices

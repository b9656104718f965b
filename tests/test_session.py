from datetime import date

import pytest

from conftest import ADMIN, NOW, OWNER, TODAY, fail, make_booking, make_expense, make_subscription, make_unit
from core.backends import InMemoryBackend
from core.errors import AccessDeniedError
from core.models import SessionLog
from core.session import Session, check_write_access


@pytest.fixture
def shared_backend():
    return InMemoryBackend({
        "units": [make_unit("U1"), make_unit("U2", user_id="someone")],
        "bookings": [make_booking("B1"), make_booking("B2", unit_id="U2", user_id="someone")],
        "expenses": [make_expense("E1"), make_expense("E2", unit_id="U2", user_id="someone")],
        "subscriptions": [make_subscription("S1"), make_subscription("S2", user_id="someone")],
        "session_logs": [SessionLog("L1", "owner", "phone", "ua", "1.1.1.1", NOW, NOW)],
        "profiles": [ADMIN, OWNER],
    })


def test_client_login_loads_only_own_rows(shared_backend):
    s = Session(shared_backend)
    s.login(OWNER)
    assert [u.id for u in s.state.units] == ["U1"]
    assert [b.id for b in s.state.bookings] == ["B1"]
    assert [e.id for e in s.state.expenses] == ["E1"]
    assert s.subscription.id == "S1"
    assert s.state.session_logs == []
    assert s.state.users == []
    assert not s.is_admin


def test_admin_login_loads_everything(shared_backend):
    s = Session(shared_backend)
    s.login(ADMIN)
    assert len(s.state.units) == 2
    assert len(s.state.bookings) == 2
    assert len(s.state.subscriptions) == 2
    assert [l.id for l in s.state.session_logs] == ["L1"]
    assert [u.id for u in s.state.users] == ["admin", "owner"]
    assert s.is_admin


def test_logout_discards_all_lists(shared_backend):
    s = Session(shared_backend)
    s.login(ADMIN)
    state = s.state
    s.logout()
    assert not s.is_authenticated
    assert s.state is state
    assert state.units == [] and state.bookings == [] and state.users == []


def test_refresh_picks_up_remote_changes(shared_backend):
    s = Session(shared_backend)
    s.login(OWNER)
    shared_backend.units.insert(make_unit("U3"))
    s.refresh()
    assert [u.id for u in s.state.units] == ["U1", "U3"]


@pytest.mark.parametrize("sub, reason", [
    (None, "no_subscription"),
    (make_subscription(status="paused"), "paused"),
    (make_subscription(start=date(2024, 4, 1), days=30), "expired"),
    (make_subscription(start=date(2024, 5, 2), days=30), "expired"),
])
def test_write_access_denied(sub, reason):
    with pytest.raises(AccessDeniedError) as exc:
        check_write_access(OWNER, sub, TODAY)
    assert exc.value.reason == reason


def test_write_access_granted():
    check_write_access(OWNER, make_subscription(start=date(2024, 5, 3), days=30), TODAY)
    check_write_access(ADMIN, None, TODAY)


def test_failed_reload_keeps_the_previous_lists(shared_backend, monkeypatch):
    s = Session(shared_backend)
    s.login(ADMIN)
    before = s.state.snapshot()
    shared_backend.units.insert(make_unit("U3"))
    monkeypatch.setattr(shared_backend.profiles, "list_all", fail)

    with pytest.raises(ConnectionError):
        s.refresh()

    assert s.state.snapshot() == before

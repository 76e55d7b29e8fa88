from datetime import date, datetime, timedelta

import pytest

from core.errors import AppointmentNotFound, InvalidTransition, StoreFailure
from model.appointment_model import AppointmentStatus

# appointments reference doctor D1
pytestmark = pytest.mark.usefixtures("doctor")

CREATED = datetime(2024, 5, 20, 12, 0)


def _create(ledger, when=datetime(2024, 6, 1, 10, 0), doctor_id="D1", name="Alice"):
    return ledger.create(name, f"{name.lower()}@x.com", doctor_id, when, created_at=CREATED)


def test_create_and_find(ledger):
    appointment = _create(ledger)

    found = ledger.find_by_id(appointment.id)
    assert found.status == AppointmentStatus.SCHEDULED.value
    assert found.appointment_time == datetime(2024, 6, 1, 10, 0)
    assert found.created_at == CREATED
    assert found.rescheduled_at is None


def test_create_requires_known_doctor(ledger):
    with pytest.raises(StoreFailure):
        _create(ledger, doctor_id="ghost")

    assert ledger.list_all() == []


def test_find_missing(ledger):
    with pytest.raises(AppointmentNotFound):
        ledger.find_by_id(404)


def test_reschedule_transitions(ledger):
    appointment = _create(ledger)
    moved_at = datetime(2024, 5, 25, 9, 0)

    first = ledger.transition(
        appointment.id, AppointmentStatus.RESCHEDULED, datetime(2024, 6, 1, 11, 0), at=moved_at
    )
    assert first.status == "Rescheduled"
    assert first.appointment_time == datetime(2024, 6, 1, 11, 0)
    assert first.rescheduled_at == moved_at

    second = ledger.transition(appointment.id, AppointmentStatus.RESCHEDULED, datetime(2024, 6, 2, 9, 0))
    assert second.status == "Rescheduled"
    assert second.appointment_time == datetime(2024, 6, 2, 9, 0)


@pytest.mark.parametrize("start", [AppointmentStatus.SCHEDULED, AppointmentStatus.RESCHEDULED])
def test_active_appointments_can_be_missed(ledger, start):
    appointment = _create(ledger)
    if start is AppointmentStatus.RESCHEDULED:
        ledger.transition(appointment.id, AppointmentStatus.RESCHEDULED)

    missed = ledger.transition(appointment.id, AppointmentStatus.MISSED)

    assert missed.status == "Missed"


@pytest.mark.parametrize(
    "target", [AppointmentStatus.RESCHEDULED, AppointmentStatus.MISSED, AppointmentStatus.SCHEDULED]
)
def test_missed_is_terminal(ledger, target):
    appointment = _create(ledger)
    ledger.transition(appointment.id, AppointmentStatus.MISSED)

    with pytest.raises(InvalidTransition):
        ledger.transition(appointment.id, target, datetime(2024, 6, 3, 10, 0))

    assert ledger.find_by_id(appointment.id).status == "Missed"
    assert ledger.find_by_id(appointment.id).appointment_time == datetime(2024, 6, 1, 10, 0)


def test_transition_back_to_scheduled_is_rejected(ledger):
    appointment = _create(ledger)
    with pytest.raises(InvalidTransition):
        ledger.transition(appointment.id, AppointmentStatus.SCHEDULED)


def test_transition_missing_appointment(ledger):
    with pytest.raises(AppointmentNotFound):
        ledger.transition(999, AppointmentStatus.MISSED)


def test_due_by_guard(ledger):
    appointment = _create(ledger, when=datetime(2024, 6, 1, 10, 0))

    with pytest.raises(InvalidTransition):
        ledger.transition(appointment.id, AppointmentStatus.MISSED, due_by=datetime(2024, 6, 1, 9, 59))
    assert ledger.find_by_id(appointment.id).status == "Scheduled"


def test_find_stale_uses_grace_boundary(ledger):
    now = datetime(2024, 6, 1, 12, 0)
    grace = timedelta(minutes=15)
    on_edge = _create(ledger, when=now - grace, name="Edge")
    old = _create(ledger, when=now - timedelta(minutes=16), name="Old")
    _create(ledger, when=now - timedelta(minutes=10), name="Recent")
    missed = _create(ledger, when=now - timedelta(hours=2), name="Gone")
    ledger.transition(missed.id, AppointmentStatus.MISSED)

    stale = ledger.find_stale(now, grace)

    assert {a.id for a in stale} == {on_edge.id, old.id}


def test_find_conflict_ignores_self_and_inactive(ledger):
    when = datetime(2024, 6, 1, 10, 0)
    alice = _create(ledger, when=when)

    assert ledger.find_conflict("D1", when, exclude_id=alice.id) is None
    assert ledger.find_conflict("D1", when).id == alice.id
    assert ledger.find_conflict("D2", when) is None

    ledger.transition(alice.id, AppointmentStatus.MISSED)
    assert ledger.find_conflict("D1", when) is None


def test_occupied_slots(ledger):
    _create(ledger, when=datetime(2024, 6, 1, 10, 0))
    _create(ledger, when=datetime(2024, 6, 1, 15, 30), name="Bob")
    _create(ledger, when=datetime(2024, 6, 2, 10, 0), name="Carol")
    missed = _create(ledger, when=datetime(2024, 6, 1, 8, 0), name="Dan")
    ledger.transition(missed.id, AppointmentStatus.MISSED)

    assert ledger.occupied_slots("D1", date(2024, 6, 1)) == {"10:00", "15:30"}


def test_list_all_keeps_history(ledger):
    first = _create(ledger)
    ledger.transition(first.id, AppointmentStatus.MISSED)
    _create(ledger, name="Bob")

    assert [a.patient_name for a in ledger.list_all()] == ["Alice", "Bob"]


def test_undo_reschedule_restores_snapshot(ledger):
    original = _create(ledger)
    moved_to = datetime(2024, 6, 1, 11, 0)
    ledger.transition(original.id, AppointmentStatus.RESCHEDULED, moved_to, at=datetime(2024, 5, 25, 9, 0))

    assert ledger.undo_reschedule(original, moved_to) is True

    restored = ledger.find_by_id(original.id)
    assert restored.status == "Scheduled"
    assert restored.appointment_time == datetime(2024, 6, 1, 10, 0)
    assert restored.rescheduled_at is None


def test_undo_reschedule_skips_changed_record(ledger):
    original = _create(ledger)
    moved_to = datetime(2024, 6, 1, 11, 0)
    ledger.transition(original.id, AppointmentStatus.RESCHEDULED, moved_to)
    ledger.transition(original.id, AppointmentStatus.MISSED)

    assert ledger.undo_reschedule(original, moved_to) is False
    assert ledger.find_by_id(original.id).status == "Missed"

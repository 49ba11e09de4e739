"""Concorrência real: várias threads, uma sessão por thread, SQLite em arquivo."""

import threading

import pytest
from sqlmodel import SQLModel, Session, create_engine, select

from petcare.core.errors import InvalidStatusTransition, ScheduleConflict
from petcare.core.time_window import overlaps
from petcare.models.appointment import Appointment
from petcare.services.ledger import AppointmentLedger
from petcare.services.lookups import SqlServiceCatalog
from petcare.services.scheduling import SchedulingService
from tests.conftest import WORK_DAY, RecordingNotifier, make_booking, seed_clinic


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'agenda.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def shared_clinic(file_engine):
    with Session(file_engine) as session:
        return seed_clinic(session)


def _run_together(workers):
    threads = [threading.Thread(target=w) for w in workers]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    assert not any(t.is_alive() for t in threads)


class TestConcurrentBookings:
    @pytest.mark.parametrize("first,second", [
        (("10:00", "10:30"), ("10:15", "10:45")),
        (("14:00", "15:00"), ("14:30", "14:45")),
        (("09:00", "09:45"), ("09:30", "10:15")),
    ])
    def test_overlapping_windows_with_different_starts(self, file_engine, shared_clinic, first, second):
        # início diferente: o índice único não pega, só a trava por funcionário/dia
        barrier = threading.Barrier(2)
        outcomes = []

        def book(window):
            draft = make_booking(shared_clinic, *window)

            def work():
                with Session(file_engine) as session:
                    ledger = AppointmentLedger(session, SqlServiceCatalog(session))
                    barrier.wait()
                    try:
                        ledger.create_appointment(draft)
                        outcomes.append("ok")
                    except ScheduleConflict:
                        outcomes.append("conflict")
            return work

        _run_together([book(first), book(second)])

        assert sorted(outcomes) == ["conflict", "ok"]

        with Session(file_engine) as session:
            rows = session.exec(
                select(Appointment).where(Appointment.appointment_date == WORK_DAY)
            ).all()
        assert len(rows) == 1

    def test_many_threads_leave_no_overlap(self, file_engine, shared_clinic):
        windows = [("10:00", "10:30"), ("10:10", "10:40"), ("10:20", "10:50"),
                   ("10:30", "11:00"), ("10:45", "11:15"), ("11:00", "11:30")]
        barrier = threading.Barrier(len(windows))
        outcomes = []

        def book(window):
            draft = make_booking(shared_clinic, *window)

            def work():
                with Session(file_engine) as session:
                    ledger = AppointmentLedger(session, SqlServiceCatalog(session))
                    barrier.wait()
                    try:
                        ledger.create_appointment(draft)
                        outcomes.append("ok")
                    except ScheduleConflict:
                        outcomes.append("conflict")
            return work

        _run_together([book(w) for w in windows])
        assert len(outcomes) == len(windows)

        with Session(file_engine) as session:
            rows = session.exec(select(Appointment)).all()
        assert len(rows) == outcomes.count("ok")
        for i, a in enumerate(rows):
            for b in rows[i + 1:]:
                assert not overlaps(a.start_time, a.end_time, b.start_time, b.end_time)


class TestConcurrentTransitions:
    def test_only_one_confirm_wins(self, file_engine, shared_clinic):
        with Session(file_engine) as session:
            appt_id = SchedulingService(session).book_appointment(make_booking(shared_clinic)).id

        notifier = RecordingNotifier()
        barrier = threading.Barrier(2)
        outcomes = []

        def confirm():
            with Session(file_engine) as session:
                service = SchedulingService(session, notifier=notifier)
                barrier.wait()
                try:
                    service.confirm(appt_id)
                    outcomes.append("ok")
                except InvalidStatusTransition:
                    outcomes.append("stale")

        _run_together([confirm, confirm])

        assert sorted(outcomes) == ["ok", "stale"]
        assert len(notifier.sent) == 1

        with Session(file_engine) as session:
            assert session.get(Appointment, appt_id).status == "CONFIRMED"

    def test_confirm_and_cancel_race(self, file_engine, shared_clinic):
        with Session(file_engine) as session:
            appt_id = SchedulingService(session).book_appointment(make_booking(shared_clinic)).id

        barrier = threading.Barrier(2)
        outcomes = {}

        def run(name):
            def work():
                with Session(file_engine) as session:
                    service = SchedulingService(session, notifier=RecordingNotifier())
                    barrier.wait()
                    try:
                        getattr(service, name)(appt_id)
                        outcomes[name] = "ok"
                    except InvalidStatusTransition:
                        outcomes[name] = "stale"
            return work

        _run_together([run("confirm"), run("cancel")])

        with Session(file_engine) as session:
            final = session.get(Appointment, appt_id).status

        # cancel depois de confirm também é válido; confirm depois de cancel não
        assert "ok" in outcomes.values()
        if outcomes["confirm"] == "stale":
            assert final == "CANCELLED"
        if outcomes["cancel"] == "stale":
            assert final == "CONFIRMED"
        if outcomes["cancel"] == "ok":
            assert final == "CANCELLED"

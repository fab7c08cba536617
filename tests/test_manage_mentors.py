import pytest

import manage_mentors
from app.exceptions import NotFoundException, ValidationException
from app.models.booking import Booking
from app.models.mentor import Mentor
from app.services.mentor_admin import (
    list_all_mentors, onboard_mentor, parse_expertise, remove_mentor, set_mentor_availability,
)


def test_parse_expertise_keeps_order_and_dedupes():
    assert parse_expertise("python, Go ,python,, rust") == ["python", "Go", "rust"]
    assert parse_expertise(["a", " b ", ""]) == ["a", "b"]


def test_onboard_mentor(db_session, mentee):
    mentor = onboard_mentor(
        db_session, mentee.id, company="Globex", position="Lead", experience_years=4,
        hourly_rate=80, bio="Frontend", expertise="react, typescript",
    )
    assert mentor.id == mentee.id
    assert mentor.expertise == ["react", "typescript"]
    assert mentor.available is True


def test_onboard_requires_profile(db_session):
    with pytest.raises(NotFoundException):
        onboard_mentor(db_session, "missing", company="c", position="p", experience_years=1,
                       hourly_rate=1, bio="b", expertise="x")


def test_onboard_twice_rejected(db_session, mentor):
    with pytest.raises(ValidationException):
        onboard_mentor(db_session, mentor.id, company="c", position="p", experience_years=1,
                       hourly_rate=1, bio="b", expertise="x")


def test_availability_and_listing(db_session, make_mentor):
    first = make_mentor("First")
    second = make_mentor("Second")
    set_mentor_availability(db_session, second.id, False)

    assert {m.id for m in list_all_mentors(db_session)} == {first.id, second.id}
    assert [m.id for m in list_all_mentors(db_session, available=False)] == [second.id]


def test_remove_mentor_drops_bookings(db_session, mentee, mentor, make_booking):
    make_booking(mentee.id, mentor.id)
    make_booking(mentee.id, mentor.id, days_ahead=2)
    mentor_id = mentor.id

    assert remove_mentor(db_session, mentor_id) == 2
    db_session.expire_all()
    assert db_session.get(Mentor, mentor_id) is None
    assert db_session.query(Booking).count() == 0


def test_cli_onboard_and_list(mentee, session_factory, capsys):
    manage_mentors.main(
        ["onboard", "--profile-id", mentee.id, "--company", "Initech", "--position", "Eng",
         "--experience-years", "3", "--hourly-rate", "50", "--bio", "hi", "--expertise", "sql,etl"],
        db=session_factory(),
    )
    assert "Onboarded mentor" in capsys.readouterr().out

    manage_mentors.main(["list"], db=session_factory())
    out = capsys.readouterr().out
    assert "Mentors (1 total)" in out
    assert mentee.id in out


def test_cli_remove_needs_confirm(mentor, session_factory):
    with pytest.raises(SystemExit):
        manage_mentors.main(["remove", "--mentor-id", mentor.id], db=session_factory())


def test_cli_reports_missing_mentor(session_factory, capsys):
    with pytest.raises(SystemExit):
        manage_mentors.main(["set-available", "--mentor-id", "nope", "--no"], db=session_factory())
    assert "not found" in capsys.readouterr().out

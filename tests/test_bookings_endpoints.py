from datetime import datetime, timedelta, UTC
from unittest.mock import patch

from app.core.policies import row_security
from app.models.booking import Booking


def _start(days=1):
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


def test_create_booking_defaults_to_pending(client, mentee, mentor, auth_headers):
    resp = client.post(
        "/bookings",
        json={"mentor_id": mentor.id, "start_time": _start(), "duration": 60},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "pending"
    assert body["user_id"] == mentee.id
    assert body["mentor_id"] == mentor.id
    assert body["id"]


def test_booking_on_behalf_of_someone_else_rejected(client, db_session, mentee, mentor, outsider, auth_headers):
    resp = client.post(
        "/bookings",
        json={"mentor_id": mentor.id, "user_id": outsider.id, "start_time": _start(), "duration": 60},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 403
    assert db_session.query(Booking).count() == 0


def test_explicit_self_user_id_accepted(client, mentee, mentor, auth_headers):
    resp = client.post(
        "/bookings",
        json={"mentor_id": mentor.id, "user_id": mentee.id, "start_time": _start(), "duration": 30,
              "status": "confirmed"},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "confirmed"


def test_unknown_status_rejected(client, mentee, mentor, auth_headers):
    resp = client.post(
        "/bookings",
        json={"mentor_id": mentor.id, "start_time": _start(), "duration": 30, "status": "maybe"},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 422


def test_unknown_mentor_is_a_conflict(client, mentee, auth_headers):
    resp = client.post(
        "/bookings",
        json={"mentor_id": "not-a-mentor", "start_time": _start(), "duration": 30},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 409


def test_booking_a_plain_profile_is_a_conflict(client, mentee, outsider, auth_headers):
    # outsider has a profile but no mentor row
    resp = client.post(
        "/bookings",
        json={"mentor_id": outsider.id, "start_time": _start(), "duration": 30},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 409


def test_overlapping_bookings_are_allowed(client, mentee, mentor, make_user, auth_headers):
    other = make_user("Other Mentee")
    start = _start(3)
    for who in (mentee, other):
        resp = client.post(
            "/bookings",
            json={"mentor_id": mentor.id, "start_time": start, "duration": 60},
            headers=auth_headers(who),
        )
        assert resp.status_code == 201


def test_visibility_limited_to_parties(client, mentee, mentor, outsider, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)

    for party in (mentee, mentor):
        listed = client.get("/bookings", headers=auth_headers(party)).json()
        assert [b["id"] for b in listed] == [booking.id]
        assert client.get(f"/bookings/{booking.id}", headers=auth_headers(party)).status_code == 200

    assert client.get("/bookings", headers=auth_headers(outsider)).json() == []
    assert client.get(f"/bookings/{booking.id}", headers=auth_headers(outsider)).status_code == 404


def test_list_filters_by_status_and_orders_by_start(client, mentee, mentor, make_booking, auth_headers):
    later = make_booking(mentee.id, mentor.id, days_ahead=5)
    sooner = make_booking(mentee.id, mentor.id, days_ahead=2)
    make_booking(mentee.id, mentor.id, status="cancelled", days_ahead=1)

    resp = client.get("/bookings", params={"status": "pending"}, headers=auth_headers(mentee))
    assert [b["id"] for b in resp.json()] == [sooner.id, later.id]


def test_mentor_confirms_booking(client, mentee, mentor, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    resp = client.patch(f"/bookings/{booking.id}", json={"status": "confirmed"}, headers=auth_headers(mentor))
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "confirmed"
    assert datetime.fromisoformat(body["updated_at"]) >= datetime.fromisoformat(body["created_at"])


def test_any_status_transition_is_allowed(client, mentee, mentor, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id, status="completed")
    resp = client.patch(f"/bookings/{booking.id}", json={"status": "pending"}, headers=auth_headers(mentee))
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"


def test_booker_reschedules(client, mentee, mentor, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    new_start = datetime(2031, 5, 4, 15, 30, tzinfo=UTC)
    resp = client.patch(
        f"/bookings/{booking.id}",
        json={"start_time": new_start.isoformat(), "duration": 90},
        headers=auth_headers(mentee),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert datetime.fromisoformat(body["start_time"]) == new_start
    assert body["duration"] == 90


def test_booker_moves_booking_to_another_mentor(client, mentee, mentor, make_mentor, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    second = make_mentor("Second Mentor")
    resp = client.patch(f"/bookings/{booking.id}", json={"mentor_id": second.id}, headers=auth_headers(mentee))
    assert resp.status_code == 200
    assert resp.json()["mentor_id"] == second.id


def test_mentor_cannot_hand_booking_to_someone_else(client, db_session, mentee, mentor, make_mentor,
                                                    make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    second = make_mentor("Second Mentor")
    resp = client.patch(f"/bookings/{booking.id}", json={"mentor_id": second.id}, headers=auth_headers(mentor))
    assert resp.status_code == 403
    db_session.expire_all()
    assert db_session.get(Booking, booking.id).mentor_id == mentor.id


def test_outsider_cannot_update_booking(client, mentee, mentor, outsider, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    resp = client.patch(f"/bookings/{booking.id}", json={"status": "cancelled"}, headers=auth_headers(outsider))
    assert resp.status_code == 404


def test_bookings_cannot_be_deleted_through_the_api(client, mentee, mentor, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    resp = client.delete(f"/bookings/{booking.id}", headers=auth_headers(mentee))
    assert resp.status_code == 405


def test_status_change_audited_with_previous_status(client, mentee, mentor, make_booking, auth_headers):
    booking = make_booking(mentee.id, mentor.id)
    with patch.object(row_security, "get_for_update", wraps=row_security.get_for_update) as lookup, \
            patch("app.routes.bookings.audit.log_booking_update") as audited:
        resp = client.patch(f"/bookings/{booking.id}", json={"status": "confirmed"}, headers=auth_headers(mentor))

    assert resp.status_code == 200
    assert lookup.call_count == 1
    audited.assert_called_once_with(mentor.id, booking.id, ["status"], "pending", "confirmed")

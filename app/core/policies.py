"""Row-security policies for every table, in one place.

Mirrors the policies created by the initial Alembic revision. All of them
apply to authenticated identities only; there are no delete policies.
"""
from app.models.profile import Profile
from app.models.mentor import Mentor
from app.models.booking import Booking
from app.services.row_security import (
    Action, Always, AnyOf, Equals, IsIdentity, Policy, RowSecurity,
)

row_security = RowSecurity()

row_security.enable(
    Profile,
    Policy("Users can view all profiles", Action.select, using=Always()),
    Policy(
        "Users can update own profile",
        Action.update,
        using=IsIdentity("id"),
        check=IsIdentity("id"),
    ),
)

row_security.enable(
    Mentor,
    Policy("Anyone can view available mentors", Action.select, using=Equals("available", True)),
    Policy(
        "Mentors can update own profile",
        Action.update,
        using=IsIdentity("id"),
        check=IsIdentity("id"),
    ),
)

_booking_party = AnyOf(IsIdentity("user_id"), IsIdentity("mentor_id"))

row_security.enable(
    Booking,
    Policy("Users can view own bookings", Action.select, using=_booking_party),
    Policy("Users can create bookings", Action.insert, check=IsIdentity("user_id")),
    Policy(
        "Users can update own bookings",
        Action.update,
        using=_booking_party,
        check=_booking_party,
    ),
)

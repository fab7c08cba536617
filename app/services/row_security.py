"""Row-level security enforced in the application layer.

Every table registers named policies, each bound to one action. A policy
carries a USING predicate (which existing rows the action can reach) and/or
a WITH CHECK predicate (which row states may be written). Policies on the
same table and action are permissive: passing any one of them is enough.
An action with no policy is denied outright.

Predicates are small objects that render both as a SQLAlchemy clause, for
filtering queries, and as a plain Python test against an instance, for
checking rows that are about to be written.

Rows hidden by USING behave as if they did not exist. A WITH CHECK failure
rejects the statement with ``ForbiddenException``. Writes that read rows back
also go through the SELECT policies: an update can only reach rows the
caller can see, and the written row must stay visible to them.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import false, or_, true
from sqlalchemy.orm import Query, Session

from app.exceptions import ForbiddenException, NotFoundException, UnauthorizedException

logger = logging.getLogger("app.row_security")


class Action(str, enum.Enum):
    select = "select"
    insert = "insert"
    update = "update"
    delete = "delete"


class Predicate:
    def clause(self, model, identity: str):
        raise NotImplementedError

    def matches(self, row: Any, identity: str) -> bool:
        raise NotImplementedError


class Always(Predicate):
    def clause(self, model, identity):
        return true()

    def matches(self, row, identity):
        return True

    def __repr__(self):
        return "true"


@dataclass(frozen=True)
class IsIdentity(Predicate):
    """``<column> = <acting identity>``"""
    column: str

    def clause(self, model, identity):
        return getattr(model, self.column) == identity

    def matches(self, row, identity):
        return getattr(row, self.column) == identity

    def __repr__(self):
        return f"{self.column} = identity"


@dataclass(frozen=True)
class Equals(Predicate):
    column: str
    value: Any

    def clause(self, model, identity):
        return getattr(model, self.column) == self.value

    def matches(self, row, identity):
        return getattr(row, self.column) == self.value

    def __repr__(self):
        return f"{self.column} = {self.value!r}"


class AnyOf(Predicate):
    def __init__(self, *predicates: Predicate):
        self.predicates = predicates

    def clause(self, model, identity):
        return or_(*(p.clause(model, identity) for p in self.predicates))

    def matches(self, row, identity):
        return any(p.matches(row, identity) for p in self.predicates)

    def __repr__(self):
        return " OR ".join(repr(p) for p in self.predicates)


@dataclass(frozen=True)
class Policy:
    name: str
    action: Action
    using: Optional[Predicate] = None
    check: Optional[Predicate] = None

    def effective_check(self) -> Optional[Predicate]:
        # SELECT and UPDATE policies without WITH CHECK test new rows against USING
        if self.check is None and self.action in (Action.select, Action.update):
            return self.using
        return self.check


class RowSecurity:
    """Registry of per-table policies plus the helpers every data path uses."""

    def __init__(self) -> None:
        self._policies: Dict[type, List[Policy]] = {}

    def enable(self, model: type, *policies: Policy) -> None:
        self._policies.setdefault(model, []).extend(policies)

    def is_enabled(self, model: type) -> bool:
        return model in self._policies

    def policies_for(self, model: type, action: Action) -> List[Policy]:
        if model not in self._policies:
            raise LookupError(f"row security is not enabled for {model.__name__}")
        return [p for p in self._policies[model] if p.action == action]

    def _require_identity(self, identity: Optional[str]) -> str:
        if not identity:
            raise UnauthorizedException("Authentication required")
        return identity

    def using_clause(self, model: type, identity: str, action: Action = Action.select):
        identity = self._require_identity(identity)
        clauses = [
            p.using.clause(model, identity)
            for p in self.policies_for(model, action)
            if p.using is not None
        ]
        if not clauses:
            return false()
        return or_(*clauses)

    def scoped(self, db: Session, model: type, identity: str, action: Action = Action.select) -> Query:
        """Query over the rows ``identity`` may reach for ``action``."""
        return db.query(model).filter(self.using_clause(model, identity, action))

    def get(self, db: Session, model: type, identity: str, row_id: Any,
            action: Action = Action.select):
        return self.scoped(db, model, identity, action).filter(model.id == row_id).first()

    def get_or_404(self, db: Session, model: type, identity: str, row_id: Any,
                   action: Action = Action.select, detail: Optional[str] = None):
        row = self.get(db, model, identity, row_id, action)
        if row is None:
            raise NotFoundException(detail or f"{model.__name__} not found")
        return row

    def check_row(self, model: type, identity: str, action: Action, row: Any) -> None:
        identity = self._require_identity(identity)
        checks = [p.effective_check() for p in self.policies_for(model, action)]
        checks = [c for c in checks if c is not None]
        if not any(c.matches(row, identity) for c in checks):
            logger.info(
                "Row security rejected %s on %s for identity %s",
                action.value, model.__tablename__, identity,
            )
            raise ForbiddenException(
                f'new row violates row-level security policy for table "{model.__tablename__}"'
            )

    def insert(self, db: Session, identity: str, row: Any) -> Any:
        model = type(row)
        self.check_row(model, identity, Action.insert, row)
        # the written row is read back, so it must also stay visible
        self.check_row(model, identity, Action.select, row)
        db.add(row)
        return row

    def get_for_update(self, db: Session, model: type, identity: str, row_id: Any,
                       detail: Optional[str] = None) -> Any:
        """Existing row reachable by both the UPDATE and the SELECT policies."""
        row = (
            self.scoped(db, model, identity, Action.update)
            .filter(self.using_clause(model, identity, Action.select))
            .filter(model.id == row_id)
            .first()
        )
        if row is None:
            raise NotFoundException(detail or f"{model.__name__} not found")
        return row

    def apply_update(self, db: Session, identity: str, row: Any, changes: Dict[str, Any]) -> Any:
        """Write ``changes`` onto a row from ``get_for_update`` and check the result.

        The new row has to pass the UPDATE check and remain visible under the
        SELECT policies. On failure the pending changes are discarded.
        """
        model = type(row)
        for field, value in changes.items():
            setattr(row, field, value)
        try:
            self.check_row(model, identity, Action.update, row)
            self.check_row(model, identity, Action.select, row)
        except ForbiddenException:
            db.expire(row)
            raise
        return row

    def update(self, db: Session, model: type, identity: str, row_id: Any,
               changes: Dict[str, Any], detail: Optional[str] = None) -> Any:
        row = self.get_for_update(db, model, identity, row_id, detail)
        return self.apply_update(db, identity, row, changes)

"""Propagate the authenticated actor through the call stack using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Role(str, Enum):
    """Roles issued by the identity provider."""

    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Who is making the current call. Opaque to the ledger beyond audit."""

    user_id: UUID
    role: Role = Role.VIEWER

    @property
    def can_write(self) -> bool:
        return self.role in (Role.EDITOR, Role.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


_current_actor: ContextVar[Actor | None] = ContextVar("current_actor", default=None)


def get_current_actor() -> Actor:
    """
    Get the current actor from context.

    Raises RuntimeError if no actor is set. Code paths that need an
    authenticated caller should fail loudly when there isn't one.
    """
    actor = _current_actor.get()
    if actor is None:
        raise RuntimeError(
            "No actor context set. This usually means you're calling "
            "actor-scoped code outside of an authenticated request."
        )
    return actor


def get_current_user_id() -> UUID | None:
    """User id of the current actor, or None for system writes."""
    actor = _current_actor.get()
    return actor.user_id if actor is not None else None


def set_current_actor(actor: Actor) -> None:
    """
    Set current actor in context.

    Called by auth middleware after validating the session.
    """
    _current_actor.set(actor)


def clear_current_actor() -> None:
    """
    Clear actor context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_actor.set(None)


@contextmanager
def actor_context(actor: Actor):
    """
    Temporarily act as someone.

    Example:
        with actor_context(Actor(user_id, Role.ADMIN)):
            receivable_service.delete(receivable_id)
    """
    previous = _current_actor.get()
    set_current_actor(actor)
    try:
        yield actor
    finally:
        if previous is None:
            clear_current_actor()
        else:
            set_current_actor(previous)

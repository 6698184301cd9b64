"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, to_utc, parse_iso, month_bounds
from utils.user_context import (
    Actor,
    Role,
    get_current_actor,
    get_current_user_id,
    set_current_actor,
    clear_current_actor,
    actor_context,
)

"""
User lifecycle hooks.

User records live in the external auth layer; this module only owns the
cascade of a user's challenge data when that layer deletes a user.
"""

from dailychallenge.core.errors import ValidationError
from dailychallenge.core.logging import log_event
from dailychallenge.features.challenges.store import ChallengeStore


def delete_user(store: ChallengeStore, user_id: str) -> int:
    """Delete every assignment owned by ``user_id``. Returns the number removed."""
    if not user_id or not user_id.strip():
        raise ValidationError("user_id is required")
    removed = store.delete_user_assignments(user_id)
    log_event("info", "user.deleted", user_id=user_id, event_type="user.deleted", extra={"assignments": removed})
    return removed

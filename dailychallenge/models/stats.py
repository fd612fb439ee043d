from pydantic import BaseModel, ConfigDict


class UserStats(BaseModel):
    """Streak and completion statistics for one user."""

    model_config = ConfigDict(frozen=True)

    total_challenges: int
    completed_challenges: int
    current_streak: int
    longest_streak: int
    completion_rate: int

"""Achievements API."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..achievements.levels import BASE_LEVEL_POINTS, LEVEL_MULTIPLIER, get_level_progress
from ..database.user_repo import find_active_user
from ..errors import NotFoundError
from .handlers import ok
from .models import AchievementOut, ApiResponse


def my_achievements(
    session: Session,
    user_id: str,
    achievements: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    """
    Report a user's points and level progress.

    Args:
        session: SQLAlchemy session
        user_id: Active user
        achievements: ``achievements`` config section (base_points, multiplier)
    """
    user = find_active_user(session, user_id)
    if not user:
        raise NotFoundError("User not found!")

    achievements = achievements or {}
    progress = get_level_progress(
        user.points or 0,
        base_points=achievements.get("base_points", BASE_LEVEL_POINTS),
        multiplier=achievements.get("multiplier", LEVEL_MULTIPLIER),
    )
    return ok(
        "Achievements retrieved successfully",
        AchievementOut(
            user_id=user.id,
            points=user.points or 0,
            level=progress.level,
            next_level_progress=progress.next_level_progress,
        ),
    )

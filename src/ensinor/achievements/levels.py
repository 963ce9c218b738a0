"""Achievement level computation from accumulated points."""

from dataclasses import dataclass

BASE_LEVEL_POINTS = 300
LEVEL_MULTIPLIER = 3


@dataclass
class LevelProgress:
    """Current level plus percent progress toward the next one."""

    level: int
    next_level_progress: float  # 0-100, two decimals


def get_level_progress(
    total_points: int,
    *,
    base_points: int = BASE_LEVEL_POINTS,
    multiplier: int = LEVEL_MULTIPLIER,
) -> LevelProgress:
    """
    Compute the level reached with ``total_points``.

    Level 1 needs ``base_points``; every further level needs ``multiplier``
    times the previous requirement on top of what was already accumulated
    (300, then 900 more, then 2700 more, ...).

    Args:
        total_points: Points earned so far (negative counts as zero)
        base_points: Requirement for level 1
        multiplier: Growth factor between level requirements

    Returns:
        LevelProgress with level and next_level_progress capped at 100
    """
    if base_points <= 0 or multiplier <= 0:
        raise ValueError("base_points and multiplier must be positive")

    points = max(0, total_points or 0)
    level = 0
    required = base_points
    accumulated = 0

    while points >= accumulated + required:
        accumulated += required
        required *= multiplier
        level += 1

    progress = min((points - accumulated) / required * 100, 100.0)
    return LevelProgress(level=level, next_level_progress=round(progress, 2))

"""
Per-person activity level classification.

Summarizes how much one person moves over the session:
- movement_speed: mean step magnitude between consecutive frames
- activity_area: bounding box of all visited centers (0-1)
- static_ratio: fraction of steps below the static threshold

Level rule:
- low:    speed < 0.02 and static_ratio > 0.7
- high:   speed > 0.08 or static_ratio < 0.3
- medium: otherwise
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np

from .synchrony import STATIC_THRESHOLD
from .tracks import PersonTrack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityMetrics:
    """
    Activity summary for one person.

    Attributes:
        activity_level: 'low', 'medium' or 'high'
        movement_speed: Mean normalized displacement per frame
        activity_area: Area of the bounding box of visited centers
        static_ratio: Fraction of frame steps without movement
    """
    activity_level: str = 'low'
    movement_speed: float = 0.0
    activity_area: float = 0.0
    static_ratio: float = 1.0

    def to_dict(self) -> dict:
        return asdict(self)


def classify_activity(track: PersonTrack, config: Dict = None) -> ActivityMetrics:
    """
    Classify the activity level of one person.

    Args:
        track: PersonTrack
        config: Configuration dict (physical.activity thresholds)

    Returns:
        ActivityMetrics (low/0/0/1.0 for fewer than two frames)
    """
    if config is None:
        config = {}
    physical_config = config.get('physical', {})
    activity_config = physical_config.get('activity', {})
    low_speed = activity_config.get('low_speed', 0.02)
    low_static_ratio = activity_config.get('low_static_ratio', 0.7)
    high_speed = activity_config.get('high_speed', 0.08)
    high_static_ratio = activity_config.get('high_static_ratio', 0.3)
    static_threshold = physical_config.get('movement', {}).get('static_threshold', STATIC_THRESHOLD)

    if len(track) < 2:
        return ActivityMetrics()

    centers = track.centers
    deltas = np.diff(centers, axis=0)
    speeds = np.hypot(deltas[:, 0], deltas[:, 1])

    movement_speed = float(np.mean(speeds))
    static_ratio = float(np.mean(speeds < static_threshold))

    extent = centers.max(axis=0) - centers.min(axis=0)
    activity_area = float(np.clip(extent[0] * extent[1], 0.0, 1.0))

    if movement_speed < low_speed and static_ratio > low_static_ratio:
        level = 'low'
    elif movement_speed > high_speed or static_ratio < high_static_ratio:
        level = 'high'
    else:
        level = 'medium'

    logger.debug(
        f"Activity {track.person_id}: {level} "
        f"(speed={movement_speed:.4f}, static={static_ratio:.2f}, area={activity_area:.4f})"
    )

    return ActivityMetrics(
        activity_level=level,
        movement_speed=movement_speed,
        activity_area=activity_area,
        static_ratio=static_ratio
    )

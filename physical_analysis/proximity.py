"""
Inter-person proximity analysis.

Pairs the frames of two person tracks in time and measures the normalized
distance between their box centers:

    distance = |center_a - center_b| / sqrt(2)      (clamped to [0, 1])

sqrt(2) is the diagonal of the unit frame, so 0 means the centers coincide
and 1 means opposite corners.

Frame matching:
- Equal-length tracks whose timestamps agree within tolerance pair by index
- Otherwise each frame of track A takes the nearest unused frame of track B
  within tolerance (default 0.5s)

Summary:
- proximity_score = 1 - average_distance
- No matched pairs: average_distance = 1, closest_approach = 1, score = 0
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from .tracks import PersonFrame, PersonTrack

logger = logging.getLogger(__name__)

DEFAULT_MATCH_TOLERANCE = 0.5
MAX_CENTER_DISTANCE = np.sqrt(2.0)


@dataclass(frozen=True)
class ProximityPoint:
    """Normalized distance between two people at one instant."""
    time: float
    distance: float

    def to_dict(self) -> dict:
        return {'time': self.time, 'distance': self.distance}


@dataclass(frozen=True)
class ProximityAnalysis:
    """
    Proximity summary for a pair of tracks.

    Attributes:
        average_distance: Mean normalized distance over matched frames
        closest_approach: Minimum normalized distance
        proximity_score: 1 - average_distance
        timeline: ProximityPoint per matched frame pair
    """
    average_distance: float = 1.0
    closest_approach: float = 1.0
    proximity_score: float = 0.0
    timeline: Tuple[ProximityPoint, ...] = field(default_factory=tuple)

    @property
    def matched_pairs(self) -> int:
        return len(self.timeline)

    def to_dict(self) -> dict:
        return {
            'average_distance': self.average_distance,
            'closest_approach': self.closest_approach,
            'proximity_score': self.proximity_score,
            'matched_pairs': self.matched_pairs,
            'timeline': [p.to_dict() for p in self.timeline],
        }


def center_distance(frame_a: PersonFrame, frame_b: PersonFrame) -> float:
    """Normalized center-to-center distance in [0, 1]."""
    delta = np.subtract(frame_a.center, frame_b.center)
    return float(np.clip(np.hypot(delta[0], delta[1]) / MAX_CENTER_DISTANCE, 0.0, 1.0))


def match_frames(
    track_a: PersonTrack,
    track_b: PersonTrack,
    tolerance: float = DEFAULT_MATCH_TOLERANCE
) -> List[Tuple[PersonFrame, PersonFrame]]:
    """
    Pair frames of two tracks in time.

    Args:
        track_a: First person track
        track_b: Second person track
        tolerance: Maximum time difference for a pair (seconds)

    Returns:
        List of (frame_a, frame_b) pairs in track A order
    """
    if not track_a.has_data or not track_b.has_data:
        return []

    times_a = track_a.times
    times_b = track_b.times

    if len(times_a) == len(times_b) and np.all(np.abs(times_a - times_b) <= tolerance):
        return list(zip(track_a.frames, track_b.frames))

    pairs = []
    used = np.zeros(len(times_b), dtype=bool)

    for i, frame_a in enumerate(track_a.frames):
        diffs = np.abs(times_b - times_a[i])
        diffs[used] = np.inf
        j = int(np.argmin(diffs))
        if diffs[j] <= tolerance:
            used[j] = True
            pairs.append((frame_a, track_b.frames[j]))

    logger.debug(
        f"Matched {len(pairs)} of {len(times_a)}/{len(times_b)} frames "
        f"between {track_a.person_id} and {track_b.person_id}"
    )

    return pairs


def build_proximity_timeline(
    pairs: List[Tuple[PersonFrame, PersonFrame]]
) -> Tuple[ProximityPoint, ...]:
    """Distance per matched pair, timed at the midpoint of the two frames."""
    return tuple(
        ProximityPoint(
            time=(frame_a.time + frame_b.time) / 2,
            distance=center_distance(frame_a, frame_b)
        )
        for frame_a, frame_b in pairs
    )


def analyze_proximity(
    track_a: PersonTrack,
    track_b: PersonTrack,
    config: Dict = None
) -> ProximityAnalysis:
    """
    Analyze proximity between two people.

    Args:
        track_a: First person track
        track_b: Second person track
        config: Configuration dict (physical.match_tolerance_sec)

    Returns:
        ProximityAnalysis (defaults when no frames can be matched)
    """
    if config is None:
        config = {}
    tolerance = config.get('physical', {}).get('match_tolerance_sec', DEFAULT_MATCH_TOLERANCE)

    timeline = build_proximity_timeline(match_frames(track_a, track_b, tolerance))

    if not timeline:
        logger.warning("No matched frames for proximity analysis, using defaults")
        return ProximityAnalysis()

    distances = np.array([p.distance for p in timeline])
    average_distance = float(np.mean(distances))

    logger.info(
        f"Proximity: {len(timeline)} matched frames, "
        f"mean distance {average_distance:.3f}, closest {distances.min():.3f}"
    )

    return ProximityAnalysis(
        average_distance=average_distance,
        closest_approach=float(distances.min()),
        proximity_score=1.0 - average_distance,
        timeline=timeline
    )

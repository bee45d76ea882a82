"""
Movement extraction and inter-person movement synchrony.

Movement steps:
- step = center(t) - center(t-1) for consecutive frames of one track
- magnitude < 0.01: static; > 0.05: move; otherwise gesture
- direction is the dominant axis (image y grows downward)

Synchrony:
- Every pair of non-static steps (one per person) within a 2s window
  is compared by cosine similarity of the step vectors
- similarity > 0.7: synchronized (moving the same way)
- similarity < -0.7: mirrored (moving in opposite directions)

Steps are sorted by time and compared in blocks: np.searchsorted bounds
the other person's steps that can fall inside the window, and scipy's
cdist computes cosine similarities only for that slice, so memory does not
grow with the square of session length. Event time is the midpoint of the
two step times and events are ordered by (time, type, similarity), so
swapping the two people yields the same events and score.

    sync_score = min(1, events / max(steps_a, steps_b, 1))
"""

import logging
from dataclasses import dataclass, asdict, field
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np
from scipy.spatial.distance import cdist

from .tracks import PersonTrack

logger = logging.getLogger(__name__)

STATIC_THRESHOLD = 0.01
MOVE_THRESHOLD = 0.05
SYNC_WINDOW_SEC = 2.0
SIMILARITY_THRESHOLD = 0.7

# Steps of the first person compared per cdist call, and the largest
# similarity matrix built before falling back to one step at a time
PAIR_BLOCK_SIZE = 256
MAX_BLOCK_PAIRS = 262144
WINDOW_EPSILON = 1e-9


@dataclass(frozen=True)
class MovementStep:
    """
    Displacement of one person between consecutive frames.

    Attributes:
        time: Time of the later frame
        dx: Horizontal center displacement
        dy: Vertical center displacement
        magnitude: Euclidean length of (dx, dy)
        movement_type: 'static', 'gesture' or 'move'
        direction: Dominant axis direction ('up', 'down', 'left', 'right')
    """
    time: float
    dx: float
    dy: float
    magnitude: float
    movement_type: str
    direction: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SynchronyEvent:
    time: float
    type: str
    similarity: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SynchronyAnalysis:
    """
    Movement synchrony between two people.

    Attributes:
        sync_score: Event count relative to the longer step sequence (0-1)
        events: SynchronyEvent tuple ordered by (time, type)
        synchronized_count: Number of 'synchronized' events
        mirroring_count: Number of 'mirrored' events
    """
    sync_score: float = 0.0
    events: Tuple[SynchronyEvent, ...] = field(default_factory=tuple)
    synchronized_count: int = 0
    mirroring_count: int = 0

    def to_dict(self) -> dict:
        return {
            'sync_score': self.sync_score,
            'events': [e.to_dict() for e in self.events],
            'synchronized_count': self.synchronized_count,
            'mirroring_count': self.mirroring_count,
        }


def extract_movements(track: PersonTrack, config: Dict = None) -> Tuple[MovementStep, ...]:
    """
    Extract frame-to-frame movement steps from a track.

    Args:
        track: PersonTrack with time-ordered frames
        config: Configuration dict (physical.movement thresholds)

    Returns:
        Tuple of MovementStep (empty for fewer than two frames)
    """
    if config is None:
        config = {}
    movement_config = config.get('physical', {}).get('movement', {})
    static_threshold = movement_config.get('static_threshold', STATIC_THRESHOLD)
    move_threshold = movement_config.get('move_threshold', MOVE_THRESHOLD)

    if len(track) < 2:
        return ()

    centers = track.centers
    deltas = np.diff(centers, axis=0)
    magnitudes = np.hypot(deltas[:, 0], deltas[:, 1])

    steps = []
    for frame, (dx, dy), magnitude in zip(track.frames[1:], deltas, magnitudes):
        if magnitude < static_threshold:
            movement_type = 'static'
        elif magnitude > move_threshold:
            movement_type = 'move'
        else:
            movement_type = 'gesture'

        steps.append(MovementStep(
            time=frame.time,
            dx=float(dx),
            dy=float(dy),
            magnitude=float(magnitude),
            movement_type=movement_type,
            direction=_dominant_direction(dx, dy)
        ))

    return tuple(steps)


def analyze_movement_synchrony(
    steps_a: Sequence[MovementStep],
    steps_b: Sequence[MovementStep],
    config: Dict = None
) -> SynchronyAnalysis:
    """
    Detect synchronized and mirrored movement between two people.

    Args:
        steps_a: Movement steps of the first person
        steps_b: Movement steps of the second person
        config: Configuration dict (physical.synchrony.window_sec, similarity_threshold)

    Returns:
        SynchronyAnalysis
    """
    if config is None:
        config = {}
    physical_config = config.get('physical', {})
    sync_config = physical_config.get('synchrony', {})
    window = sync_config.get('window_sec', SYNC_WINDOW_SEC)
    threshold = sync_config.get('similarity_threshold', SIMILARITY_THRESHOLD)
    static_threshold = physical_config.get('movement', {}).get('static_threshold', STATIC_THRESHOLD)

    moving_a = sorted((s for s in steps_a if s.magnitude >= static_threshold), key=lambda s: s.time)
    moving_b = sorted((s for s in steps_b if s.magnitude >= static_threshold), key=lambda s: s.time)

    if not moving_a or not moving_b:
        logger.debug("No moving steps for one person, synchrony is zero")
        return SynchronyAnalysis()

    times_a = np.array([s.time for s in moving_a], dtype=float)
    times_b = np.array([s.time for s in moving_b], dtype=float)
    vectors_a = np.array([[s.dx, s.dy] for s in moving_a])
    vectors_b = np.array([[s.dx, s.dy] for s in moving_b])

    events: List[SynchronyEvent] = []
    for i, j, similarity in _windowed_similarities(times_a, times_b, vectors_a, vectors_b, window):
        if similarity > threshold:
            event_type = 'synchronized'
        elif similarity < -threshold:
            event_type = 'mirrored'
        else:
            continue

        events.append(SynchronyEvent(
            time=(moving_a[i].time + moving_b[j].time) / 2,
            type=event_type,
            similarity=similarity
        ))

    events.sort(key=lambda e: (e.time, e.type, e.similarity))

    sync_score = min(1.0, len(events) / max(len(steps_a), len(steps_b), 1))
    mirroring_count = sum(1 for e in events if e.type == 'mirrored')

    logger.info(
        f"Movement synchrony: {len(events)} events "
        f"({mirroring_count} mirrored), score {sync_score:.3f}"
    )

    return SynchronyAnalysis(
        sync_score=sync_score,
        events=tuple(events),
        synchronized_count=len(events) - mirroring_count,
        mirroring_count=mirroring_count
    )


def _dominant_direction(dx: float, dy: float) -> str:
    if abs(dx) > abs(dy):
        return 'right' if dx > 0 else 'left'
    return 'down' if dy > 0 else 'up'


def _windowed_similarities(
    times_a: np.ndarray,
    times_b: np.ndarray,
    vectors_a: np.ndarray,
    vectors_b: np.ndarray,
    window: float
) -> Iterator[Tuple[int, int, float]]:
    """
    Yield (i, j, cosine similarity) for step pairs at most `window` apart.

    Both time arrays must be sorted. Steps of the first person are processed
    in blocks against the slice of the second person's steps that can fall
    inside the window; a block whose slice is too large is split into
    single steps.
    """
    lows = np.searchsorted(times_b, times_a - window - WINDOW_EPSILON, side='left')
    highs = np.searchsorted(times_b, times_a + window + WINDOW_EPSILON, side='right')

    for start in range(0, len(times_a), PAIR_BLOCK_SIZE):
        stop = min(start + PAIR_BLOCK_SIZE, len(times_a))
        lo, hi = int(lows[start]), int(highs[stop - 1])
        if lo >= hi:
            continue

        if (stop - start) * (hi - lo) <= MAX_BLOCK_PAIRS:
            yield from _slice_similarities(times_a, times_b, vectors_a, vectors_b, window, start, stop, lo, hi)
        else:
            for i in range(start, stop):
                if lows[i] < highs[i]:
                    yield from _slice_similarities(
                        times_a, times_b, vectors_a, vectors_b, window,
                        i, i + 1, int(lows[i]), int(highs[i])
                    )


def _slice_similarities(
    times_a: np.ndarray,
    times_b: np.ndarray,
    vectors_a: np.ndarray,
    vectors_b: np.ndarray,
    window: float,
    start: int,
    stop: int,
    lo: int,
    hi: int
) -> Iterator[Tuple[int, int, float]]:
    time_diffs = np.abs(times_a[start:stop, None] - times_b[None, lo:hi])
    similarities = 1.0 - cdist(vectors_a[start:stop], vectors_b[lo:hi], metric='cosine')

    for i, j in zip(*np.nonzero(time_diffs <= window)):
        yield start + int(i), lo + int(j), float(similarities[i, j])

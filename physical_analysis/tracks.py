"""
Person-tracking stream ingestion and geometry primitives.

Tracking providers report one track per detected person, each a list of
timestamped, normalized bounding boxes. Two input shapes are accepted:

1. Annotation shape (video-intelligence style):
   [{"tracks": [{"timestampedObjects": [
        {"timeOffset": "1.2s", "normalizedBoundingBox": {...}, "confidence": 0.9}
   ]}]}]
2. Simple shape:
   [{"person_id": "a", "frames": [{"time": 1.2, "bbox": {...}}]}]  or
   [[{"time": 1.2, "boundingBox": {...}}], ...]

Coordinates are clamped to [0, 1]; centers and areas are derived on access.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from utils.time_utils import parse_optional_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in normalized [0, 1] image coordinates."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.left + self.right) / 2, (self.top + self.bottom) / 2)

    @property
    def area(self) -> float:
        return (self.right - self.left) * (self.bottom - self.top)

    def to_dict(self) -> dict:
        return {'left': self.left, 'top': self.top, 'right': self.right, 'bottom': self.bottom}

    @classmethod
    def from_mapping(cls, raw: Mapping) -> 'BoundingBox':
        """
        Build a box from provider fields.

        Missing edges default to the full frame (left/top 0, right/bottom 1);
        edges are clamped to [0, 1] and re-ordered if inverted.
        """
        left = _clamp_unit(raw.get('left'), 0.0)
        top = _clamp_unit(raw.get('top'), 0.0)
        right = _clamp_unit(raw.get('right'), 1.0)
        bottom = _clamp_unit(raw.get('bottom'), 1.0)
        return cls(
            left=min(left, right),
            top=min(top, bottom),
            right=max(left, right),
            bottom=max(top, bottom)
        )


@dataclass(frozen=True)
class PersonFrame:
    """Single detection of one person."""
    time: float
    bbox: BoundingBox
    confidence: float = 0.5

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    def to_dict(self) -> dict:
        return {'time': self.time, 'bbox': self.bbox.to_dict(), 'confidence': self.confidence}


@dataclass(frozen=True)
class PersonTrack:
    """
    Time-ordered detections of one person.

    Attributes:
        person_id: Track identifier
        frames: PersonFrame tuple sorted by time
    """
    person_id: str
    frames: Tuple[PersonFrame, ...] = ()

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def has_data(self) -> bool:
        return len(self.frames) > 0

    @property
    def times(self) -> np.ndarray:
        return np.array([f.time for f in self.frames], dtype=float)

    @property
    def centers(self) -> np.ndarray:
        """(N, 2) array of box centers."""
        if not self.frames:
            return np.empty((0, 2))
        return np.array([f.center for f in self.frames], dtype=float)

    @classmethod
    def from_frames(cls, person_id: str, frames: Iterable[PersonFrame]) -> 'PersonTrack':
        return cls(person_id=person_id, frames=tuple(sorted(frames, key=lambda f: f.time)))


def extract_person_tracks(detections: Any) -> List[PersonTrack]:
    """
    Convert a raw tracking stream into PersonTrack objects.

    Args:
        detections: Tracking stream in annotation or simple shape

    Returns:
        List of PersonTrack in stream order (tracks without frames included)

    Raises:
        TimestampParseError: If a present time offset has an unrecognized shape
    """
    if detections is None or (isinstance(detections, (list, tuple)) and not detections):
        logger.warning("No person detection data provided")
        return []

    if not isinstance(detections, (list, tuple)):
        logger.warning(f"Person detection data must be a list, got {type(detections).__name__}")
        return []

    tracks: List[PersonTrack] = []
    skipped = 0

    for item in detections:
        if isinstance(item, Mapping) and 'tracks' in item:
            raw_tracks = item.get('tracks') or []
            if not isinstance(raw_tracks, (list, tuple)):
                logger.warning(f"Skipping annotation: tracks is {type(raw_tracks).__name__}, not a list")
                skipped += 1
                continue
            for raw_track in raw_tracks:
                tracks.append(_parse_track(raw_track, f"person_{len(tracks)}"))
        else:
            tracks.append(_parse_track(item, f"person_{len(tracks)}"))

    if skipped:
        logger.warning(f"Skipped {skipped} malformed person detection annotations")

    logger.info(
        f"Extracted {len(tracks)} person tracks "
        f"({sum(len(t) for t in tracks)} frames total)"
    )

    return tracks


def _parse_track(raw_track: Any, default_id: str) -> PersonTrack:
    person_id = default_id
    raw_frames: Sequence = ()

    if isinstance(raw_track, Mapping):
        person_id = str(raw_track.get('person_id') or raw_track.get('personId') or default_id)
        raw_frames = (
            raw_track.get('timestampedObjects')
            or raw_track.get('timestamped_objects')
            or raw_track.get('frames')
            or ()
        )
        if not isinstance(raw_frames, (list, tuple)):
            logger.warning(
                f"Track {person_id}: frames is {type(raw_frames).__name__}, not a list; track has no data"
            )
            raw_frames = ()
    elif isinstance(raw_track, (list, tuple)):
        raw_frames = raw_track
    else:
        logger.warning(f"Skipping malformed track {default_id}: {type(raw_track).__name__}")

    frames = []
    for raw_frame in raw_frames:
        frame = _parse_frame(raw_frame)
        if frame is not None:
            frames.append(frame)

    if raw_frames and len(frames) < len(raw_frames):
        logger.debug(f"Track {person_id}: dropped {len(raw_frames) - len(frames)} frames without boxes")

    return PersonTrack.from_frames(person_id, frames)


def _parse_frame(raw: Any) -> Optional[PersonFrame]:
    if not isinstance(raw, Mapping):
        return None

    box = (
        raw.get('normalizedBoundingBox')
        or raw.get('normalized_bounding_box')
        or raw.get('boundingBox')
        or raw.get('bbox')
    )
    if not isinstance(box, Mapping):
        return None

    time_value = raw.get('timeOffset')
    if time_value is None:
        time_value = raw.get('time_offset', raw.get('time'))

    confidence = raw.get('confidence')
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = 0.5

    return PersonFrame(
        time=parse_optional_time(time_value),
        bbox=BoundingBox.from_mapping(box),
        confidence=float(confidence)
    )


def _clamp_unit(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not np.isfinite(value):
        return default
    return float(min(1.0, max(0.0, value)))

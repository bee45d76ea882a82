"""
Physical interaction analysis for a two-person session.

Combines the physical stages over the first two tracks that carry data:
1. Frame matching and proximity timeline
2. Movement steps and movement synchrony
3. Per-person activity classification
4. Interaction events along the proximity timeline

Interaction event rule (per consecutive timeline points):
- delta = distance(t) - distance(t-1)
- delta < -0.02: approach; delta > 0.02: retreat; otherwise parallel_movement
- distance(t) < 0.1: contact, regardless of delta
- The first timeline point emits contact (duration 0) if already in contact

Degraded input:
- Fewer than two tracks with data: proximity/synchrony defaults, activity
  still classified for a single tracked person
- Malformed track objects: complete default result, never raised
"""

import logging
from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional, Sequence, Tuple

from .activity import ActivityMetrics, classify_activity
from .proximity import ProximityAnalysis, ProximityPoint, analyze_proximity
from .synchrony import SynchronyAnalysis, analyze_movement_synchrony, extract_movements
from .tracks import PersonTrack

logger = logging.getLogger(__name__)

DISTANCE_DELTA_THRESHOLD = 0.02
CONTACT_DISTANCE = 0.1


@dataclass(frozen=True)
class InteractionEvent:
    time: float
    type: str
    duration: float
    intensity: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PhysicalInteractionResult:
    """
    Physical interaction analysis for a session.

    Attributes:
        proximity: ProximityAnalysis of the two tracked people
        synchrony: SynchronyAnalysis of their movement
        person1_activity: ActivityMetrics of the first tracked person
        person2_activity: ActivityMetrics of the second tracked person
        overall_synchrony: Synchrony score (0 when either person never moves)
        events: InteractionEvent tuple in time order
        person_ids: Identifiers of the analyzed tracks (None if absent)
        tracks_with_data: Number of input tracks carrying frames
        total_frames: Number of frames across all input tracks
    """
    proximity: ProximityAnalysis = field(default_factory=ProximityAnalysis)
    synchrony: SynchronyAnalysis = field(default_factory=SynchronyAnalysis)
    person1_activity: ActivityMetrics = field(default_factory=ActivityMetrics)
    person2_activity: ActivityMetrics = field(default_factory=ActivityMetrics)
    overall_synchrony: float = 0.0
    events: Tuple[InteractionEvent, ...] = field(default_factory=tuple)
    person_ids: Tuple[Optional[str], Optional[str]] = (None, None)
    tracks_with_data: int = 0
    total_frames: int = 0

    @property
    def matched_pairs(self) -> int:
        return self.proximity.matched_pairs

    def to_dict(self) -> dict:
        return {
            'proximity': self.proximity.to_dict(),
            'synchrony': self.synchrony.to_dict(),
            'activity': {
                'person1': self.person1_activity.to_dict(),
                'person2': self.person2_activity.to_dict(),
                'overall_synchrony': self.overall_synchrony,
            },
            'events': [e.to_dict() for e in self.events],
            'person_ids': list(self.person_ids),
            'tracks_with_data': self.tracks_with_data,
            'total_frames': self.total_frames,
        }


def detect_interaction_events(
    timeline: Sequence[ProximityPoint],
    config: Dict = None
) -> Tuple[InteractionEvent, ...]:
    """
    Classify each step of the proximity timeline.

    Args:
        timeline: Time-ordered ProximityPoint sequence
        config: Configuration dict (physical.events.delta_threshold, contact_distance)

    Returns:
        Tuple of InteractionEvent
    """
    if config is None:
        config = {}
    events_config = config.get('physical', {}).get('events', {})
    delta_threshold = events_config.get('delta_threshold', DISTANCE_DELTA_THRESHOLD)
    contact_distance = events_config.get('contact_distance', CONTACT_DISTANCE)

    if not timeline:
        return ()

    events: List[InteractionEvent] = []

    first = timeline[0]
    if first.distance < contact_distance:
        events.append(InteractionEvent(time=first.time, type='contact', duration=0.0, intensity=0.0))

    for previous, current in zip(timeline, timeline[1:]):
        delta = current.distance - previous.distance

        if current.distance < contact_distance:
            event_type = 'contact'
        elif delta < -delta_threshold:
            event_type = 'approach'
        elif delta > delta_threshold:
            event_type = 'retreat'
        else:
            event_type = 'parallel_movement'

        events.append(InteractionEvent(
            time=current.time,
            type=event_type,
            duration=current.time - previous.time,
            intensity=abs(delta)
        ))

    return tuple(events)


def analyze_physical_interaction(
    tracks: Sequence[PersonTrack],
    config: Dict = None
) -> PhysicalInteractionResult:
    """
    Run the physical interaction stages over a set of person tracks.

    Args:
        tracks: PersonTrack sequence (as returned by extract_person_tracks)
        config: Configuration dict

    Returns:
        PhysicalInteractionResult
    """
    if config is None:
        config = {}

    tracks = list(tracks or [])
    malformed = [t for t in tracks if not isinstance(t, PersonTrack)]
    if malformed:
        logger.warning(
            f"{len(malformed)} malformed track objects "
            f"({type(malformed[0]).__name__}), returning default physical result"
        )
        return PhysicalInteractionResult()

    with_data = [t for t in tracks if t.has_data]
    total_frames = sum(len(t) for t in tracks)

    if not with_data:
        logger.warning("No tracked person data, returning default physical result")
        return PhysicalInteractionResult(total_frames=total_frames)

    person1 = with_data[0]
    person1_activity = classify_activity(person1, config)

    if len(with_data) < 2:
        logger.warning(
            f"Only one tracked person ({person1.person_id}), "
            f"proximity and synchrony use defaults"
        )
        return PhysicalInteractionResult(
            person1_activity=person1_activity,
            person_ids=(person1.person_id, None),
            tracks_with_data=1,
            total_frames=total_frames
        )

    if len(with_data) > 2:
        logger.info(f"{len(with_data)} tracked people, analyzing the first two")

    person2 = with_data[1]

    proximity = analyze_proximity(person1, person2, config)
    steps1 = extract_movements(person1, config)
    steps2 = extract_movements(person2, config)
    synchrony = analyze_movement_synchrony(steps1, steps2, config)
    events = detect_interaction_events(proximity.timeline, config)

    logger.info(
        f"Physical interaction: proximity {proximity.proximity_score:.3f}, "
        f"sync {synchrony.sync_score:.3f}, {len(events)} events"
    )

    return PhysicalInteractionResult(
        proximity=proximity,
        synchrony=synchrony,
        person1_activity=person1_activity,
        person2_activity=classify_activity(person2, config),
        overall_synchrony=synchrony.sync_score if steps1 and steps2 else 0.0,
        events=events,
        person_ids=(person1.person_id, person2.person_id),
        tracks_with_data=len(with_data),
        total_frames=total_frames
    )

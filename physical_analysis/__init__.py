"""
Physical interaction analysis modules.

This package analyzes the person-tracking stream of a two-person session:
- Tracking ingestion (provider detections -> PersonTrack)
- Proximity (normalized inter-person distance timeline)
- Movement synchrony (synchronized and mirrored movement)
- Activity level per person
- Interaction events (approach, retreat, parallel movement, contact)

Geometry is computed in normalized image coordinates, so results do not
depend on the video resolution.
"""

from .tracks import (
    BoundingBox,
    PersonFrame,
    PersonTrack,
    extract_person_tracks
)

from .proximity import (
    ProximityPoint,
    ProximityAnalysis,
    match_frames,
    analyze_proximity
)

from .synchrony import (
    MovementStep,
    SynchronyEvent,
    SynchronyAnalysis,
    extract_movements,
    analyze_movement_synchrony
)

from .activity import (
    ActivityMetrics,
    classify_activity
)

from .interaction import (
    InteractionEvent,
    PhysicalInteractionResult,
    detect_interaction_events,
    analyze_physical_interaction
)

__all__ = [
    'BoundingBox',
    'PersonFrame',
    'PersonTrack',
    'extract_person_tracks',
    'ProximityPoint',
    'ProximityAnalysis',
    'match_frames',
    'analyze_proximity',
    'MovementStep',
    'SynchronyEvent',
    'SynchronyAnalysis',
    'extract_movements',
    'analyze_movement_synchrony',
    'ActivityMetrics',
    'classify_activity',
    'InteractionEvent',
    'PhysicalInteractionResult',
    'detect_interaction_events',
    'analyze_physical_interaction',
]

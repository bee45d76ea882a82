"""
Unit tests for physical interaction analysis.

Tests tracking ingestion, proximity, movement synchrony, activity
classification and interaction events.
"""

import pytest # pyright: ignore[reportMissingImports]
import numpy as np
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from physical_analysis import (
    BoundingBox,
    MovementStep,
    PersonFrame,
    PersonTrack,
    ProximityPoint,
    extract_person_tracks,
    match_frames,
    analyze_proximity,
    extract_movements,
    analyze_movement_synchrony,
    classify_activity,
    detect_interaction_events,
    analyze_physical_interaction
)
from physical_analysis import synchrony
from utils.time_utils import TimestampParseError

BOX_HALF = 0.05


def make_track(person_id, points):
    """Track from (time, center_x, center_y) points with 0.1 x 0.1 boxes."""
    frames = [
        PersonFrame(
            time=t,
            bbox=BoundingBox(cx - BOX_HALF, cy - BOX_HALF, cx + BOX_HALF, cy + BOX_HALF),
            confidence=0.9
        )
        for t, cx, cy in points
    ]
    return PersonTrack.from_frames(person_id, frames)


def approaching_tracks():
    """Person B walks toward a static person A and reaches them at t=5."""
    a = make_track('a', [(t, 0.2, 0.5) for t in range(6)])
    b = make_track('b', [(t, x, 0.5) for t, x in enumerate([0.8, 0.7, 0.6, 0.5, 0.4, 0.25])])
    return a, b


def random_steps(seed, count, fps=5.0):
    """Random-walk movement steps at a fixed frame rate."""
    rng = np.random.default_rng(seed)
    deltas = rng.normal(0.0, 0.05, size=(count, 2))
    return tuple(
        MovementStep(
            time=(k + 1) / fps, dx=float(dx), dy=float(dy),
            magnitude=float(np.hypot(dx, dy)), movement_type='move', direction='up'
        )
        for k, (dx, dy) in enumerate(deltas)
    )


def all_pairs_counts(steps_a, steps_b, window=2.0, threshold=0.7):
    """(synchronized, mirrored) counts from a plain loop over every step pair."""
    synchronized = mirrored = 0
    for sa in steps_a:
        for sb in steps_b:
            if sa.magnitude < 0.01 or sb.magnitude < 0.01 or abs(sa.time - sb.time) > window:
                continue
            cosine = (sa.dx * sb.dx + sa.dy * sb.dy) / (sa.magnitude * sb.magnitude)
            if cosine > threshold:
                synchronized += 1
            elif cosine < -threshold:
                mirrored += 1
    return synchronized, mirrored


class TestTrackIngestion:
    """Test conversion of raw tracking streams."""

    def test_annotation_shape(self):
        detections = [{'tracks': [{'timestampedObjects': [
            {'timeOffset': '1.5s', 'normalizedBoundingBox': {'left': 0.1, 'top': 0.2, 'right': 0.3, 'bottom': 0.4},
             'confidence': 0.8},
            {'timeOffset': {}, 'normalizedBoundingBox': {'left': 0.5, 'top': 0.5, 'right': 0.7, 'bottom': 0.7}},
        ]}]}]

        tracks = extract_person_tracks(detections)

        assert len(tracks) == 1
        track = tracks[0]
        assert track.person_id == 'person_0'
        assert [f.time for f in track.frames] == [0.0, 1.5]
        assert track.frames[1].center == pytest.approx((0.2, 0.3))
        assert track.frames[1].confidence == 0.8
        assert track.frames[0].confidence == 0.5

    def test_simple_shape(self):
        detections = [
            {'person_id': 'parent', 'frames': [{'time': 1, 'bbox': {'left': 0.1, 'right': 0.2}}]},
            [{'time': 0.5, 'boundingBox': {'left': 0.6, 'right': 0.8}}],
        ]

        tracks = extract_person_tracks(detections)

        assert [t.person_id for t in tracks] == ['parent', 'person_1']
        assert tracks[1].frames[0].time == 0.5

    def test_missing_edges_and_clamping(self):
        box = BoundingBox.from_mapping({'left': -0.5, 'right': 1.5})
        assert (box.left, box.top, box.right, box.bottom) == (0.0, 0.0, 1.0, 1.0)

        inverted = BoundingBox.from_mapping({'left': 0.8, 'right': 0.2, 'top': 0.1, 'bottom': 0.3})
        assert inverted.left == 0.2
        assert inverted.right == 0.8
        assert inverted.area == pytest.approx(0.6 * 0.2)

    def test_track_without_frames_kept(self):
        tracks = extract_person_tracks([{'tracks': [{'timestampedObjects': []}]}])
        assert len(tracks) == 1
        assert not tracks[0].has_data

    def test_empty_stream(self):
        assert extract_person_tracks(None) == []
        assert extract_person_tracks([]) == []

    @pytest.mark.parametrize("detections", [
        5,
        {'tracks': []},
        [{'tracks': 7}],
        [{'person_id': 'a', 'frames': 5}],
        [{'timestampedObjects': {'timeOffset': '1s'}}],
    ])
    def test_malformed_containers_degrade(self, detections):
        tracks = extract_person_tracks(detections)

        assert all(not t.has_data for t in tracks)
        assert analyze_physical_interaction(tracks).tracks_with_data == 0

    def test_malformed_annotation_skipped(self):
        detections = [
            {'tracks': 7},
            {'person_id': 'b', 'frames': [{'time': 0, 'bbox': {'left': 0.1}}]},
        ]
        tracks = extract_person_tracks(detections)

        assert [t.person_id for t in tracks] == ['b']
        assert tracks[0].has_data

    def test_malformed_time_offset_raises(self):
        detections = [{'tracks': [{'timestampedObjects': [
            {'timeOffset': 'later', 'normalizedBoundingBox': {'left': 0.1}},
        ]}]}]
        with pytest.raises(TimestampParseError):
            extract_person_tracks(detections)


class TestProximity:
    """Test frame matching and distance."""

    def test_index_pairing(self):
        a, b = approaching_tracks()
        pairs = match_frames(a, b)
        assert len(pairs) == 6
        assert all(fa.time == fb.time for fa, fb in pairs)

    def test_nearest_time_pairing(self):
        a = make_track('a', [(0.0, 0.2, 0.5), (1.0, 0.2, 0.5), (2.0, 0.2, 0.5)])
        b = make_track('b', [(0.1, 0.8, 0.5), (2.05, 0.8, 0.5)])

        pairs = match_frames(a, b)

        assert [(fa.time, fb.time) for fa, fb in pairs] == [(0.0, 0.1), (2.0, 2.05)]

    def test_each_frame_used_once(self):
        a = make_track('a', [(0.0, 0.2, 0.5), (0.1, 0.2, 0.5)])
        b = make_track('b', [(0.05, 0.8, 0.5)])
        assert len(match_frames(a, b)) == 1

    def test_distance_normalized(self):
        a = make_track('a', [(0.0, 0.2, 0.5)])
        b = make_track('b', [(0.0, 0.8, 0.5)])

        result = analyze_proximity(a, b)

        assert result.average_distance == pytest.approx(0.6 / np.sqrt(2))
        assert result.proximity_score == pytest.approx(1 - 0.6 / np.sqrt(2))
        assert result.closest_approach == pytest.approx(result.average_distance)

    def test_distance_bounds(self):
        a = make_track('a', [(0.0, 0.05, 0.05)])
        b = make_track('b', [(0.0, 0.95, 0.95)])
        distance = analyze_proximity(a, b).average_distance
        assert 0.0 <= distance <= 1.0

    def test_no_matches_default(self):
        a = make_track('a', [(0.0, 0.2, 0.5)])
        b = make_track('b', [(10.0, 0.8, 0.5)])

        result = analyze_proximity(a, b)

        assert result.average_distance == 1.0
        assert result.closest_approach == 1.0
        assert result.proximity_score == 0.0
        assert result.matched_pairs == 0


class TestMovementSynchrony:
    """Test movement steps and synchrony events."""

    def test_movement_types(self):
        track = make_track('a', [(0, 0.5, 0.5), (1, 0.505, 0.5), (2, 0.535, 0.5), (3, 0.535, 0.6)])
        steps = extract_movements(track)

        assert [s.movement_type for s in steps] == ['static', 'gesture', 'move']
        assert [s.direction for s in steps][1:] == ['right', 'down']
        assert steps[0].time == 1

    def test_mirrored_movement(self):
        a = make_track('a', [(0, 0.3, 0.5), (1, 0.4, 0.5)])
        b = make_track('b', [(0, 0.7, 0.5), (1, 0.6, 0.5)])

        result = analyze_movement_synchrony(extract_movements(a), extract_movements(b))

        assert len(result.events) == 1
        assert result.events[0].type == 'mirrored'
        assert result.events[0].time == pytest.approx(1.0)
        assert result.mirroring_count == 1
        assert result.synchronized_count == 0
        assert result.sync_score == 1.0

    def test_synchronized_movement(self):
        a = make_track('a', [(0, 0.3, 0.5), (1, 0.4, 0.5)])
        b = make_track('b', [(0, 0.6, 0.5), (1.5, 0.7, 0.52)])

        result = analyze_movement_synchrony(extract_movements(a), extract_movements(b))

        assert [e.type for e in result.events] == ['synchronized']
        assert result.events[0].time == pytest.approx(1.25)

    def test_outside_window_ignored(self):
        a = make_track('a', [(0, 0.3, 0.5), (1, 0.4, 0.5)])
        b = make_track('b', [(4, 0.6, 0.5), (5, 0.7, 0.5)])

        result = analyze_movement_synchrony(extract_movements(a), extract_movements(b))

        assert result.events == ()
        assert result.sync_score == 0.0

    def test_swap_symmetry(self):
        a = make_track('a', [(0, 0.3, 0.5), (1, 0.4, 0.5), (2, 0.4, 0.6), (3, 0.3, 0.6)])
        b = make_track('b', [(0, 0.7, 0.5), (1.2, 0.6, 0.5), (2.1, 0.6, 0.6), (3.3, 0.5, 0.6)])
        steps_a, steps_b = extract_movements(a), extract_movements(b)

        forward = analyze_movement_synchrony(steps_a, steps_b)
        backward = analyze_movement_synchrony(steps_b, steps_a)

        assert forward.sync_score == backward.sync_score
        assert sorted(e.type for e in forward.events) == sorted(e.type for e in backward.events)
        assert [e.time for e in forward.events] == [e.time for e in backward.events]
        assert forward.events

    def test_static_steps_skipped(self):
        a = make_track('a', [(0, 0.3, 0.5), (1, 0.3, 0.5)])
        b = make_track('b', [(0, 0.6, 0.5), (1, 0.6, 0.5)])
        result = analyze_movement_synchrony(extract_movements(a), extract_movements(b))
        assert result.sync_score == 0.0

    def test_long_session_matches_all_pairs(self):
        a, b = random_steps(0, 700), random_steps(1, 650)

        result = analyze_movement_synchrony(a, b)

        assert (result.synchronized_count, result.mirroring_count) == all_pairs_counts(a, b)

    def test_dense_block_split_into_single_steps(self, monkeypatch):
        a, b = random_steps(2, 300), random_steps(3, 300)
        expected = analyze_movement_synchrony(a, b)

        monkeypatch.setattr(synchrony, 'MAX_BLOCK_PAIRS', 10)

        assert analyze_movement_synchrony(a, b) == expected


class TestActivity:
    """Test activity level classification."""

    def test_static_person_low(self):
        metrics = classify_activity(make_track('a', [(t, 0.5, 0.5) for t in range(5)]))

        assert metrics.activity_level == 'low'
        assert metrics.movement_speed == pytest.approx(0.0)
        assert metrics.static_ratio == 1.0
        assert metrics.activity_area == pytest.approx(0.0)

    def test_fast_person_high(self):
        metrics = classify_activity(make_track('a', [(t, 0.1 + 0.1 * t, 0.5) for t in range(5)]))

        assert metrics.activity_level == 'high'
        assert metrics.movement_speed == pytest.approx(0.1)
        assert metrics.static_ratio == 0.0

    def test_medium_activity(self):
        points = [(0, 0.5, 0.5), (1, 0.53, 0.5), (2, 0.53, 0.5), (3, 0.56, 0.5)]
        metrics = classify_activity(make_track('a', points))

        assert metrics.activity_level == 'medium'

    def test_activity_area(self):
        points = [(0, 0.2, 0.2), (1, 0.6, 0.2), (2, 0.6, 0.7)]
        metrics = classify_activity(make_track('a', points))
        assert metrics.activity_area == pytest.approx(0.4 * 0.5)

    def test_single_frame_default(self):
        metrics = classify_activity(make_track('a', [(0, 0.5, 0.5)]))

        assert metrics.activity_level == 'low'
        assert metrics.movement_speed == 0.0
        assert metrics.activity_area == 0.0
        assert metrics.static_ratio == 1.0


class TestInteractionEvents:
    """Test interaction events and the combined analysis."""

    def test_contact_detected_at_t5(self):
        a, b = approaching_tracks()
        result = analyze_physical_interaction([a, b])

        contacts = [e for e in result.events if e.type == 'contact']
        assert len(contacts) == 1
        assert contacts[0].time == 5
        assert [e.type for e in result.events[:4]] == ['approach'] * 4

    def test_event_fields(self):
        timeline = [ProximityPoint(0.0, 0.5), ProximityPoint(0.5, 0.51), ProximityPoint(1.5, 0.6)]
        events = detect_interaction_events(timeline)

        assert [e.type for e in events] == ['parallel_movement', 'retreat']
        assert events[0].duration == pytest.approx(0.5)
        assert events[1].intensity == pytest.approx(0.09)

    def test_initial_contact(self):
        events = detect_interaction_events([ProximityPoint(0.0, 0.05), ProximityPoint(1.0, 0.05)])

        assert [e.type for e in events] == ['contact', 'contact']
        assert events[0].duration == 0.0
        assert events[0].intensity == 0.0

    def test_single_person_defaults(self):
        track = make_track('a', [(t, 0.1 + 0.1 * t, 0.5) for t in range(5)])

        result = analyze_physical_interaction([track])

        assert result.proximity.proximity_score == 0.0
        assert result.synchrony.sync_score == 0.0
        assert result.events == ()
        assert result.person1_activity.activity_level == 'high'
        assert result.person2_activity.activity_level == 'low'
        assert result.tracks_with_data == 1

    def test_malformed_tracks_default(self):
        a, _ = approaching_tracks()

        result = analyze_physical_interaction([a, {'frames': []}])

        assert result.person1_activity.activity_level == 'low'
        assert result.proximity.average_distance == 1.0
        assert result.tracks_with_data == 0

    def test_no_tracks(self):
        result = analyze_physical_interaction([])
        assert result.to_dict()['proximity']['proximity_score'] == 0.0

    def test_config_contact_distance(self):
        a, b = approaching_tracks()
        config = {'physical': {'events': {'contact_distance': 0.2}}}

        result = analyze_physical_interaction([a, b], config)

        assert [e.time for e in result.events if e.type == 'contact'] == [4, 5]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])

"""
Input data quality assessment.

Quality reflects input completeness only; it is reported next to the scores
so consumers can discount low-quality sessions, and never blocks scoring.

Speech quality:  0 without words, else
                 0.4 + 0.2 * min(speakers, 2) + 0.02 * min(turns, 10)
Video quality:   0 without frames, else
                 0.3 + 0.2 * min(tracks with data, 2) + 0.01 * min(matched pairs, 30)
Overall:         mean of speech and video quality
Confidence:      0.9 * overall
Flag:            excellent >= 0.8, good >= 0.6, fair >= 0.4, else poor
"""

import logging
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataQualityReport:
    """
    Data quality assessment for one session.

    Attributes:
        speech_quality: Completeness of the speech stream (0-1)
        video_quality: Completeness of the tracking stream (0-1)
        overall_quality: Mean of speech and video quality
        confidence: Confidence attached to the composite score (0-1)
        quality_flag: 'excellent', 'good', 'fair' or 'poor'
        word_count: Number of input words
        speaker_count: Number of distinct speakers
        turn_count: Number of segmented turns
        tracks_with_data: Number of tracks carrying frames
        matched_pairs: Number of time-matched frame pairs
    """
    speech_quality: float = 0.0
    video_quality: float = 0.0
    overall_quality: float = 0.0
    confidence: float = 0.0
    quality_flag: str = 'poor'
    word_count: int = 0
    speaker_count: int = 0
    turn_count: int = 0
    tracks_with_data: int = 0
    matched_pairs: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def assess_data_quality(
    word_count: int,
    speaker_count: int,
    turn_count: int,
    total_frames: int,
    tracks_with_data: int,
    matched_pairs: int
) -> DataQualityReport:
    """
    Assess input completeness.

    Args:
        word_count: Number of input words
        speaker_count: Number of distinct speakers
        turn_count: Number of segmented turns
        total_frames: Number of tracking frames across all tracks
        tracks_with_data: Number of tracks carrying frames
        matched_pairs: Number of time-matched frame pairs

    Returns:
        DataQualityReport
    """
    if word_count > 0:
        speech_quality = min(1.0, 0.4 + 0.2 * min(speaker_count, 2) + 0.02 * min(turn_count, 10))
    else:
        speech_quality = 0.0

    if total_frames > 0:
        video_quality = min(1.0, 0.3 + 0.2 * min(tracks_with_data, 2) + 0.01 * min(matched_pairs, 30))
    else:
        video_quality = 0.0

    overall = (speech_quality + video_quality) / 2
    flag = quality_flag(overall)

    if flag in ('fair', 'poor'):
        logger.warning(
            f"Low input data quality ({flag}): speech={speech_quality:.2f}, video={video_quality:.2f}"
        )

    return DataQualityReport(
        speech_quality=speech_quality,
        video_quality=video_quality,
        overall_quality=overall,
        confidence=0.9 * overall,
        quality_flag=flag,
        word_count=word_count,
        speaker_count=speaker_count,
        turn_count=turn_count,
        tracks_with_data=tracks_with_data,
        matched_pairs=matched_pairs
    )


def quality_flag(overall_quality: float) -> str:
    if overall_quality >= 0.8:
        return 'excellent'
    elif overall_quality >= 0.6:
        return 'good'
    elif overall_quality >= 0.4:
        return 'fair'
    return 'poor'

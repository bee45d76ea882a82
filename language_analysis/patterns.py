"""
Conversation patterns and utterance timeline.

Patterns (over all entries sorted by time):
- A speaker switch within 30s counts as a conversational turn; its
  response time is the start-to-start interval
- An initiation is the first entry, or an entry after more than 5s
  without anyone speaking

Timeline:
- One bin per minute from 0 to the last utterance
- Spans longer than 1440 bins (one day) keep only the occupied bins
- Utterance counts per speaker in each bin
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .transcript import TranscriptEntry

logger = logging.getLogger(__name__)

RESPONSE_WINDOW_SEC = 30.0
INITIATION_SILENCE_SEC = 5.0
TIMELINE_BIN_SEC = 60.0
MAX_TIMELINE_BINS = 1440


@dataclass(frozen=True)
class ConversationPatterns:
    """
    Speaker-switch patterns.

    Attributes:
        avg_response_time: Mean start-to-start time of speaker switches
        turn_count: Speaker switches within the response window
        initiation_count: Initiations per speaker
    """
    avg_response_time: float = 0.0
    turn_count: int = 0
    initiation_count: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'avg_response_time': self.avg_response_time,
            'turn_count': self.turn_count,
            'initiation_count': dict(self.initiation_count),
        }


@dataclass(frozen=True)
class TimelineBin:
    start_time: float
    end_time: float
    utterances: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.utterances.values())

    def to_dict(self) -> dict:
        return {
            'start_time': self.start_time,
            'end_time': self.end_time,
            'utterances': dict(self.utterances),
            'total': self.total,
        }


def analyze_conversation_patterns(
    entries: Sequence[TranscriptEntry],
    config: Dict = None
) -> ConversationPatterns:
    """
    Analyze speaker switches and initiations.

    Args:
        entries: Transcript entries in any order
        config: Configuration dict (language.response_window_sec, initiation_silence_sec)

    Returns:
        ConversationPatterns
    """
    if config is None:
        config = {}
    language_config = config.get('language', {})
    response_window = language_config.get('response_window_sec', RESPONSE_WINDOW_SEC)
    initiation_silence = language_config.get('initiation_silence_sec', INITIATION_SILENCE_SEC)

    if not entries:
        return ConversationPatterns()

    ordered = sorted(entries, key=lambda e: e.time)

    response_times: List[float] = []
    initiation_count: Dict[str, int] = {ordered[0].speaker: 1}

    for previous, current in zip(ordered, ordered[1:]):
        interval = current.time - previous.time

        if current.speaker != previous.speaker and 0 < interval < response_window:
            response_times.append(interval)

        if interval > initiation_silence:
            initiation_count[current.speaker] = initiation_count.get(current.speaker, 0) + 1

    avg_response_time = float(np.mean(response_times)) if response_times else 0.0

    logger.debug(
        f"Conversation patterns: {len(response_times)} switches, "
        f"mean response {avg_response_time:.2f}s"
    )

    return ConversationPatterns(
        avg_response_time=avg_response_time,
        turn_count=len(response_times),
        initiation_count=initiation_count
    )


def build_utterance_timeline(
    entries: Sequence[TranscriptEntry],
    bin_seconds: float = TIMELINE_BIN_SEC,
    max_bins: int = MAX_TIMELINE_BINS
) -> Tuple[TimelineBin, ...]:
    """
    Bin utterances per minute and speaker.

    Args:
        entries: Transcript entries
        bin_seconds: Bin width (seconds)
        max_bins: Largest number of contiguous bins; longer spans keep only
            the bins that contain utterances

    Returns:
        Tuple of TimelineBin covering 0 .. last utterance (empty for no entries)
    """
    if not entries:
        return ()

    speakers = list(dict.fromkeys(e.speaker for e in entries))

    counts: Dict[int, Dict[str, int]] = {}
    for entry in entries:
        index = max(0, math.floor(entry.time / bin_seconds))
        counts.setdefault(index, dict.fromkeys(speakers, 0))[entry.speaker] += 1

    last_index = max(counts)
    if last_index < max_bins:
        indices = range(last_index + 1)
    else:
        logger.warning(
            f"Utterance timeline spans {last_index + 1} bins (limit {max_bins}), "
            f"keeping only the {len(counts)} bins with utterances"
        )
        indices = sorted(counts)

    return tuple(
        TimelineBin(
            start_time=i * bin_seconds,
            end_time=(i + 1) * bin_seconds,
            utterances=counts.get(i) or dict.fromkeys(speakers, 0)
        )
        for i in indices
    )

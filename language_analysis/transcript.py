"""
Transcript entries for language analysis.

A transcript entry is one utterance: who spoke, when it started and what was
said. Entries are built from conversation turns (one entry per turn) and
grouped per speaker in first-appearance order.
"""

import logging
import re
from dataclasses import dataclass, asdict
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from conversation_analysis.turn_segmentation import ConversationTurn

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"[\w']+")


@dataclass(frozen=True)
class TranscriptEntry:
    speaker: str
    time: float
    text: str

    def to_dict(self) -> dict:
        return asdict(self)


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens with punctuation removed (apostrophes kept)."""
    if not text or not isinstance(text, str):
        return []
    return [t.strip("'") for t in TOKEN_PATTERN.findall(text.lower()) if t.strip("'")]


def entries_from_turns(turns: Iterable[ConversationTurn]) -> Tuple[TranscriptEntry, ...]:
    """One transcript entry per turn, timed at the turn start."""
    entries = tuple(
        TranscriptEntry(speaker=turn.speaker_id, time=turn.start_time, text=turn.transcript)
        for turn in turns
    )
    logger.debug(f"Built {len(entries)} transcript entries from turns")
    return entries


def group_entries_by_speaker(
    entries: Iterable[TranscriptEntry]
) -> Mapping[str, Tuple[TranscriptEntry, ...]]:
    """
    Group entries per speaker.

    Returns:
        Read-only mapping speaker -> entries sorted by time
    """
    grouped: Dict[str, List[TranscriptEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.speaker, []).append(entry)

    return MappingProxyType({
        speaker: tuple(sorted(items, key=lambda e: e.time))
        for speaker, items in grouped.items()
    })

"""
Turn segmentation from word-level diarized speech.

Collapses a flat word stream into conversation turns:
- A turn is a maximal run of consecutive same-speaker words
- Each turn is typed relative to the turn that closed before it
- Overlapping speech (negative gap) marks an interruption

Turn-type rule:
1. First turn of the session: INITIATION
2. gap = start - previous.end < 0: INTERRUPTION
3. Same speaker as previous turn: CONTINUATION
4. Otherwise: RESPONSE

Engineering approach:
- Words are re-sorted by start time (stable), never assumed pre-sorted
- Turns are immutable; next_speaker is filled by a second pass
- Per-speaker grouping is built once and exposed read-only
"""

import logging
from dataclasses import dataclass, asdict, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .speech_words import SpeechWord

logger = logging.getLogger(__name__)


class TurnType(Enum):
    """Role of a turn relative to the turn before it."""
    INITIATION = "INITIATION"
    RESPONSE = "RESPONSE"
    CONTINUATION = "CONTINUATION"
    INTERRUPTION = "INTERRUPTION"


@dataclass(frozen=True)
class ConversationTurn:
    """
    Single conversation turn.

    Attributes:
        speaker_id: Speaker identifier ("speaker_<tag>")
        start_time: Turn start in seconds
        end_time: Turn end in seconds
        duration: end_time - start_time
        transcript: Space-joined words of the turn
        turn_type: TurnType of the turn
        previous_speaker: Speaker of the preceding turn (None if first)
        next_speaker: Speaker of the following turn (None if last)
        gap_duration: start_time - previous.end_time (None if first);
            negative values encode overlap
        word_count: Number of words absorbed into the turn
    """
    speaker_id: str
    start_time: float
    end_time: float
    duration: float
    transcript: str
    turn_type: TurnType
    previous_speaker: Optional[str] = None
    next_speaker: Optional[str] = None
    gap_duration: Optional[float] = None
    word_count: int = 0

    @property
    def is_interruption(self) -> bool:
        return self.turn_type is TurnType.INTERRUPTION

    def to_dict(self) -> dict:
        data = asdict(self)
        data['turn_type'] = self.turn_type.value
        return data


class _OpenTurn:
    """Mutable accumulator for the turn currently being built."""

    __slots__ = ('speaker_id', 'start_time', 'end_time', 'words')

    def __init__(self, word: SpeechWord):
        self.speaker_id = word.speaker_id
        self.start_time = word.start_time
        self.end_time = word.end_time
        self.words = [word.text]

    def extend(self, word: SpeechWord) -> None:
        self.end_time = max(self.end_time, word.end_time)
        self.words.append(word.text)


def segment_turns(words: Iterable[SpeechWord]) -> Tuple[ConversationTurn, ...]:
    """
    Segment a word stream into conversation turns.

    Args:
        words: SpeechWord records, possibly from several fragments and in
            any order

    Returns:
        Tuple of ConversationTurn in time order (empty for empty input)
    """
    ordered = sorted(words, key=lambda w: w.start_time)

    if not ordered:
        logger.warning("No words provided for turn segmentation")
        return ()

    turns: List[ConversationTurn] = []
    open_turn: Optional[_OpenTurn] = None

    for word in ordered:
        if open_turn is None:
            open_turn = _OpenTurn(word)
        elif word.speaker_id != open_turn.speaker_id:
            turns.append(_close_turn(open_turn, turns))
            open_turn = _OpenTurn(word)
        else:
            open_turn.extend(word)

    turns.append(_close_turn(open_turn, turns))

    # Second pass: link each turn to its successor
    linked = [
        replace(turn, next_speaker=turns[i + 1].speaker_id) if i + 1 < len(turns) else turn
        for i, turn in enumerate(turns)
    ]

    interruptions = sum(1 for t in linked if t.is_interruption)
    logger.info(
        f"Segmented {len(ordered)} words into {len(linked)} turns "
        f"({interruptions} interruptions)"
    )

    return tuple(linked)


def group_turns_by_speaker(
    turns: Iterable[ConversationTurn]
) -> Mapping[str, Tuple[ConversationTurn, ...]]:
    """
    Group turns per speaker, preserving time order.

    Returns:
        Read-only mapping speaker_id -> tuple of that speaker's turns
    """
    grouped: Dict[str, List[ConversationTurn]] = {}
    for turn in turns:
        grouped.setdefault(turn.speaker_id, []).append(turn)

    return MappingProxyType({speaker: tuple(items) for speaker, items in grouped.items()})


def _close_turn(open_turn: _OpenTurn, closed: List[ConversationTurn]) -> ConversationTurn:
    previous = closed[-1] if closed else None
    gap = open_turn.start_time - previous.end_time if previous else None

    return ConversationTurn(
        speaker_id=open_turn.speaker_id,
        start_time=open_turn.start_time,
        end_time=open_turn.end_time,
        duration=open_turn.end_time - open_turn.start_time,
        transcript=' '.join(w for w in open_turn.words if w),
        turn_type=_determine_turn_type(open_turn.speaker_id, previous, gap),
        previous_speaker=previous.speaker_id if previous else None,
        gap_duration=gap,
        word_count=len(open_turn.words)
    )


def _determine_turn_type(
    speaker_id: str,
    previous: Optional[ConversationTurn],
    gap: Optional[float]
) -> TurnType:
    if previous is None:
        return TurnType.INITIATION

    if gap is not None and gap < 0:
        return TurnType.INTERRUPTION

    # Only reachable when callers bypass same-speaker merging
    if previous.speaker_id == speaker_id:
        return TurnType.CONTINUATION

    return TurnType.RESPONSE

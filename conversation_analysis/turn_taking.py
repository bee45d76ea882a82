"""
Turn-taking metrics aggregation.

Summarizes conversational dynamics from segmented turns:
- Turn distribution per speaker (who talks more often)
- Initiations and responses per speaker
- Gap timing (silence between turns) vs. overlap timing (talk-over)
- Interruptions by initiator and by target
- Turn completion rate (turns not cut into by overlap)

Rules:
- A non-initial turn contributes to exactly one of average_gap_time
  (gap >= 0) or average_overlap_time (gap < 0)
- INTERRUPTION turns are failed turns; every other turn is successful
- All ratios are 0 when there are no turns

Engineering approach:
- Single pass over the turn list
- numpy for means and latency statistics
- Immutable result with JSON-friendly to_dict()
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .turn_segmentation import ConversationTurn, TurnType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterruptionStats:
    """
    Interruption counts.

    Attributes:
        total: Number of INTERRUPTION turns
        by_initiator: Interruptions started by each speaker
        by_target: Interruptions suffered by each speaker
    """
    total: int = 0
    by_initiator: Dict[str, int] = field(default_factory=dict)
    by_target: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'by_initiator': dict(self.by_initiator),
            'by_target': dict(self.by_target),
        }


@dataclass(frozen=True)
class TurnTakingMetrics:
    """
    Turn-taking statistics for a session.

    Attributes:
        total_turns: Total number of turns
        average_turn_length: Mean turn duration (seconds)
        turn_distribution: Turn count per speaker
        turn_initiation: INITIATION turns per speaker
        turn_response: RESPONSE turns per speaker
        average_gap_time: Mean non-negative gap (seconds)
        average_overlap_time: Mean |gap| over negative gaps (seconds)
        interruptions: InterruptionStats
        successful_turns: Non-interruption turns
        failed_turns: Interruption turns
        turn_completion_rate: successful_turns / total_turns
        explanation: Human-readable interpretation
    """
    total_turns: int = 0
    average_turn_length: float = 0.0
    turn_distribution: Dict[str, int] = field(default_factory=dict)
    turn_initiation: Dict[str, int] = field(default_factory=dict)
    turn_response: Dict[str, int] = field(default_factory=dict)
    average_gap_time: float = 0.0
    average_overlap_time: float = 0.0
    interruptions: InterruptionStats = field(default_factory=InterruptionStats)
    successful_turns: int = 0
    failed_turns: int = 0
    turn_completion_rate: float = 0.0
    explanation: str = ""

    @property
    def interruption_rate(self) -> float:
        return self.failed_turns / self.total_turns if self.total_turns else 0.0

    @property
    def speakers(self) -> List[str]:
        return list(self.turn_distribution)

    def to_dict(self) -> dict:
        return {
            'total_turns': self.total_turns,
            'average_turn_length': self.average_turn_length,
            'turn_distribution': dict(self.turn_distribution),
            'turn_initiation': dict(self.turn_initiation),
            'turn_response': dict(self.turn_response),
            'average_gap_time': self.average_gap_time,
            'average_overlap_time': self.average_overlap_time,
            'interruptions': self.interruptions.to_dict(),
            'successful_turns': self.successful_turns,
            'failed_turns': self.failed_turns,
            'turn_completion_rate': self.turn_completion_rate,
            'interruption_rate': self.interruption_rate,
            'explanation': self.explanation,
        }


def compute_turn_taking_metrics(turns: Sequence[ConversationTurn]) -> TurnTakingMetrics:
    """
    Compute turn-taking statistics from segmented turns.

    Args:
        turns: Time-ordered ConversationTurn sequence

    Returns:
        TurnTakingMetrics (all zero for empty input)
    """
    if not turns:
        logger.warning("No turns provided for turn-taking analysis")
        return _create_empty_metrics()

    logger.info(f"Computing turn-taking metrics for {len(turns)} turns")

    speakers = list(dict.fromkeys(t.speaker_id for t in turns))

    turn_distribution = {s: 0 for s in speakers}
    turn_initiation = {s: 0 for s in speakers}
    turn_response = {s: 0 for s in speakers}
    by_initiator = {s: 0 for s in speakers}
    by_target = {s: 0 for s in speakers}

    gaps: List[float] = []
    overlaps: List[float] = []
    failed_turns = 0

    for turn in turns:
        turn_distribution[turn.speaker_id] += 1

        if turn.turn_type is TurnType.INITIATION:
            turn_initiation[turn.speaker_id] += 1
        elif turn.turn_type is TurnType.RESPONSE:
            turn_response[turn.speaker_id] += 1
        elif turn.turn_type is TurnType.INTERRUPTION:
            failed_turns += 1
            by_initiator[turn.speaker_id] += 1
            if turn.previous_speaker is not None:
                by_target[turn.previous_speaker] = by_target.get(turn.previous_speaker, 0) + 1

        if turn.gap_duration is not None:
            if turn.gap_duration >= 0:
                gaps.append(turn.gap_duration)
            else:
                overlaps.append(abs(turn.gap_duration))

    total_turns = len(turns)
    successful_turns = total_turns - failed_turns

    average_turn_length = float(np.mean([t.duration for t in turns]))
    average_gap_time = float(np.mean(gaps)) if gaps else 0.0
    average_overlap_time = float(np.mean(overlaps)) if overlaps else 0.0
    completion_rate = successful_turns / total_turns

    explanation = _generate_turn_taking_explanation(
        turn_distribution,
        average_gap_time,
        failed_turns,
        completion_rate
    )

    return TurnTakingMetrics(
        total_turns=total_turns,
        average_turn_length=average_turn_length,
        turn_distribution=turn_distribution,
        turn_initiation=turn_initiation,
        turn_response=turn_response,
        average_gap_time=average_gap_time,
        average_overlap_time=average_overlap_time,
        interruptions=InterruptionStats(
            total=failed_turns,
            by_initiator=by_initiator,
            by_target=by_target
        ),
        successful_turns=successful_turns,
        failed_turns=failed_turns,
        turn_completion_rate=completion_rate,
        explanation=explanation
    )


def compute_response_latencies(
    turns: Sequence[ConversationTurn],
    speaker_id: Optional[str] = None
) -> Dict:
    """
    Response latency statistics for RESPONSE turns.

    Args:
        turns: ConversationTurn sequence
        speaker_id: Restrict to one responder (None = all speakers)

    Returns:
        Dictionary with mean/median/std/min/max/count of response gaps
    """
    latencies = [
        t.gap_duration for t in turns
        if t.turn_type is TurnType.RESPONSE
        and t.gap_duration is not None
        and (speaker_id is None or t.speaker_id == speaker_id)
    ]

    if not latencies:
        return {
            'mean': 0.0,
            'median': 0.0,
            'std': 0.0,
            'min': 0.0,
            'max': 0.0,
            'count': 0
        }

    return {
        'mean': float(np.mean(latencies)),
        'median': float(np.median(latencies)),
        'std': float(np.std(latencies)),
        'min': float(np.min(latencies)),
        'max': float(np.max(latencies)),
        'count': len(latencies)
    }


def _generate_turn_taking_explanation(
    turn_distribution: Dict[str, int],
    average_gap_time: float,
    interruption_count: int,
    completion_rate: float
) -> str:
    """Generate interpretation of turn-taking patterns."""

    explanation = []

    counts = ", ".join(f"{speaker}: {count}" for speaker, count in turn_distribution.items())
    explanation.append(f"Turns per speaker: {counts}.")

    if average_gap_time > 2.0:
        explanation.append(f"Pauses between turns are long (mean: {average_gap_time:.2f}s).")
    elif average_gap_time < 0.5:
        explanation.append(f"Turns follow each other quickly (mean gap: {average_gap_time:.2f}s).")
    else:
        explanation.append(f"Pauses between turns are within typical range (mean: {average_gap_time:.2f}s).")

    if interruption_count == 0:
        explanation.append("No overlapping speech observed.")
    else:
        explanation.append(
            f"{interruption_count} interruptions detected "
            f"(completion rate: {completion_rate:.0%})."
        )

    return " ".join(explanation)


def _create_empty_metrics() -> TurnTakingMetrics:
    """Create empty metrics for sessions without speech."""
    return TurnTakingMetrics(explanation="Insufficient data for turn-taking analysis")

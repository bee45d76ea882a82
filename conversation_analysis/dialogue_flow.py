"""
Dialogue flow analysis.

Derives higher-level conversation qualities from turns and turn-taking
metrics:
- Participation balance and dominance
- Conversation rhythm (consistency, naturalness, fluency, pacing)
- Interaction quality (responsiveness, mutuality, synchronization, balance)
- Supportive interaction counts (validation, encouragement, expansion...)

Balance is measured against the ideal uniform share 1/speaker_count:
    balance = 1 - mean(|share - ideal|) / ideal
The speaker count is never below the expected participant count, so a
two-person session in which only one person spoke scores 0, not 1.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Sequence

import numpy as np

from .turn_segmentation import ConversationTurn
from .turn_taking import TurnTakingMetrics

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5

VALIDATION_WORDS = frozenset({'right', 'yes', 'yeah', 'correct', 'exactly', 'okay', 'ok', 'sure'})
ENCOURAGEMENT_PHRASES = frozenset({'good job', 'well done', 'great', 'awesome', 'amazing', 'nice', 'you did it'})
EXPANSION_WORDS = frozenset({'and', 'also', 'more', 'again', 'or', 'if', 'then'})
CLARIFICATION_WORDS = frozenset({'what', 'why', 'how', 'where', 'when', 'who', 'which', 'mean'})
AGREEMENT_WORDS = frozenset({'yes', 'yeah', 'agree', 'right', 'true', 'ok', 'okay'})
DISAGREEMENT_PHRASES = frozenset({'no', 'nope', "don't", 'not', 'stop', "can't", 'wrong'})


@dataclass(frozen=True)
class ConversationDominance:
    """
    Who leads the conversation.

    Attributes:
        dominant_speaker: Speaker with most turns (ties -> lowest id)
        dominance_score: Dominant speaker's share of turns (0-1)
        participation_balance: Share of turns per speaker
        initiation_balance: Share of INITIATION turns per speaker
    """
    dominant_speaker: Optional[str] = None
    dominance_score: float = 0.0
    participation_balance: Dict[str, float] = field(default_factory=dict)
    initiation_balance: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ConversationRhythm:
    consistency: float = NEUTRAL_SCORE
    naturalness: float = 0.0
    fluency: float = 0.0
    pacing: str = 'MODERATE'


@dataclass(frozen=True)
class InteractionQuality:
    responsiveness: float = 0.0
    mutuality: float = 0.0
    synchronization: float = 0.0
    balance: float = NEUTRAL_SCORE


@dataclass(frozen=True)
class SupportiveInteractions:
    validations: int = 0
    encouragements: int = 0
    expansions: int = 0
    clarifications: int = 0
    agreements: int = 0
    disagreements: int = 0


@dataclass(frozen=True)
class DialogueFlow:
    """Complete dialogue flow analysis for a session."""
    rhythm: ConversationRhythm
    interaction_quality: InteractionQuality
    dominance: ConversationDominance
    supportive_interactions: SupportiveInteractions

    def to_dict(self) -> dict:
        return {
            'rhythm': vars(self.rhythm).copy(),
            'interaction_quality': vars(self.interaction_quality).copy(),
            'dominance': {
                'dominant_speaker': self.dominance.dominant_speaker,
                'dominance_score': self.dominance.dominance_score,
                'participation_balance': dict(self.dominance.participation_balance),
                'initiation_balance': dict(self.dominance.initiation_balance),
            },
            'supportive_interactions': vars(self.supportive_interactions).copy(),
        }


def analyze_dialogue_flow(
    turns: Sequence[ConversationTurn],
    metrics: TurnTakingMetrics,
    config: Dict = None
) -> DialogueFlow:
    """
    Analyze dialogue flow from turns and their turn-taking metrics.

    Args:
        turns: Time-ordered ConversationTurn sequence
        metrics: TurnTakingMetrics computed from the same turns
        config: Configuration dict

    Returns:
        DialogueFlow object
    """
    if config is None:
        config = {}
    conversation_config = config.get('conversation', {})
    expected_speakers = conversation_config.get('expected_speakers', 2)

    if not turns:
        logger.warning("No turns provided for dialogue flow analysis")

    balance = compute_participation_balance(metrics.turn_distribution, expected_speakers)

    return DialogueFlow(
        rhythm=compute_conversation_rhythm(turns, metrics, config),
        interaction_quality=InteractionQuality(
            responsiveness=_safe_ratio(sum(metrics.turn_response.values()), metrics.total_turns),
            mutuality=compute_mutuality(metrics.turn_distribution),
            synchronization=metrics.turn_completion_rate,
            balance=balance
        ),
        dominance=compute_conversation_dominance(metrics),
        supportive_interactions=count_supportive_interactions(turns)
    )


def compute_participation_balance(
    turn_distribution: Dict[str, int],
    expected_speakers: int = 2
) -> float:
    """
    Balance quality of turn shares against the ideal uniform share.

    Args:
        turn_distribution: Turn count per speaker
        expected_speakers: Minimum number of participants assumed present

    Returns:
        Balance in [0, 1] (1 = perfectly even; 0.5 when there are no turns)
    """
    total = sum(turn_distribution.values())
    if total <= 0:
        return NEUTRAL_SCORE

    speaker_count = max(len(turn_distribution), expected_speakers, 1)
    shares = np.zeros(speaker_count)
    shares[:len(turn_distribution)] = [count / total for count in turn_distribution.values()]

    ideal_share = 1.0 / speaker_count
    mean_deviation = float(np.mean(np.abs(shares - ideal_share)))

    return float(np.clip(1.0 - mean_deviation / ideal_share, 0.0, 1.0))


def compute_mutuality(turn_distribution: Dict[str, int]) -> float:
    """1 - coefficient of variation of turn counts (0 with fewer than two speakers)."""
    counts = np.array(list(turn_distribution.values()), dtype=float)
    if len(counts) < 2 or counts.sum() <= 0:
        return 0.0

    expected = counts.mean()
    return float(max(0.0, 1.0 - counts.std() / expected))


def compute_conversation_dominance(metrics: TurnTakingMetrics) -> ConversationDominance:
    """Identify the dominant speaker and per-speaker participation shares."""
    if metrics.total_turns == 0:
        return ConversationDominance()

    dominant_speaker = min(
        metrics.turn_distribution,
        key=lambda s: (-metrics.turn_distribution[s], s)
    )

    total_initiations = sum(metrics.turn_initiation.values())

    return ConversationDominance(
        dominant_speaker=dominant_speaker,
        dominance_score=metrics.turn_distribution[dominant_speaker] / metrics.total_turns,
        participation_balance={
            s: count / metrics.total_turns for s, count in metrics.turn_distribution.items()
        },
        initiation_balance={
            s: _safe_ratio(count, total_initiations) for s, count in metrics.turn_initiation.items()
        }
    )


def compute_conversation_rhythm(
    turns: Sequence[ConversationTurn],
    metrics: TurnTakingMetrics,
    config: Dict = None
) -> ConversationRhythm:
    """
    Rhythm of the conversation.

    consistency = max(0, 1 - (gap_cv + turn_length_cv) / 2)
    pacing: SLOW if mean gap > 2s, FAST if < 0.5s, VARIABLE if gap_cv > 0.5
    """
    if not turns:
        return ConversationRhythm()

    if config is None:
        config = {}
    rhythm_config = config.get('conversation', {}).get('rhythm', {})
    slow_gap = rhythm_config.get('slow_gap_sec', 2.0)
    fast_gap = rhythm_config.get('fast_gap_sec', 0.5)
    variable_cv = rhythm_config.get('variable_gap_cv', 0.5)

    gaps = np.array([t.gap_duration or 0.0 for t in turns])
    lengths = np.array([t.duration for t in turns])

    # Gap CV uses mean + 1 so near-zero mean gaps stay bounded
    gap_cv = float(gaps.std() / (gaps.mean() + 1.0)) if gaps.mean() > -1.0 else 0.0
    length_cv = float(lengths.std() / lengths.mean()) if lengths.mean() > 0 else 0.0

    consistency = max(0.0, 1.0 - (gap_cv + length_cv) / 2)

    if metrics.average_gap_time > slow_gap:
        pacing = 'SLOW'
    elif metrics.average_gap_time < fast_gap:
        pacing = 'FAST'
    elif gap_cv > variable_cv:
        pacing = 'VARIABLE'
    else:
        pacing = 'MODERATE'

    return ConversationRhythm(
        consistency=consistency,
        naturalness=metrics.turn_completion_rate,
        fluency=max(0.0, 1.0 - metrics.interruption_rate),
        pacing=pacing
    )


def count_supportive_interactions(turns: Sequence[ConversationTurn]) -> SupportiveInteractions:
    """Count turns containing supportive/agreement/disagreement expressions."""
    counts = dict.fromkeys(vars(SupportiveInteractions()), 0)

    for turn in turns:
        text = _normalize(turn.transcript)
        tokens = frozenset(text.split())

        if _contains_any(text, tokens, VALIDATION_WORDS):
            counts['validations'] += 1
        if _contains_any(text, tokens, ENCOURAGEMENT_PHRASES):
            counts['encouragements'] += 1
        if _contains_any(text, tokens, EXPANSION_WORDS):
            counts['expansions'] += 1
        if '?' in turn.transcript or _contains_any(text, tokens, CLARIFICATION_WORDS):
            counts['clarifications'] += 1
        if _contains_any(text, tokens, AGREEMENT_WORDS):
            counts['agreements'] += 1
        if _contains_any(text, tokens, DISAGREEMENT_PHRASES):
            counts['disagreements'] += 1

    return SupportiveInteractions(**counts)


def _normalize(text: str) -> str:
    return ' '.join(re.findall(r"[\w']+", text.lower()))


def _contains_any(text: str, tokens: FrozenSet[str], vocabulary: FrozenSet[str]) -> bool:
    for entry in vocabulary:
        if ' ' in entry:
            if f' {entry} ' in f' {text} ':
                return True
        elif entry in tokens:
            return True
    return False


def _safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


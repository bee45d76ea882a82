"""
Composite interaction quality score.

Fuses the per-modality analyses of a session into sub-scores, group scores
and one overall score, then attaches insights, grade and data quality.

Sub-score groups (all sub-scores in [0, 1]):
1. lead: engagement, responsiveness, supportiveness, emotional_regulation
2. partner: participation, expressiveness, receptiveness, emotional_expression
3. synchrony: emotional, behavioral, linguistic, temporal synchrony
4. interaction: movement_synchronization, proximity, conversation_balance,
   turn_taking_quality

Fusion:
- group score = weighted sum of its sub-scores
- overall = weighted sum of the four group scores
- interaction score = the interaction group score
- every weight table must sum to 1 (within 1e-9)

A sub-score whose underlying signal is absent takes the neutral value 0.5
and is reported in defaulted_signals; insight rules ignore it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

import numpy as np

from conversation_analysis.dialogue_flow import DialogueFlow
from conversation_analysis.turn_segmentation import ConversationTurn, TurnType
from conversation_analysis.turn_taking import TurnTakingMetrics
from language_analysis.analyzer import LanguageInteractionResult
from physical_analysis.interaction import PhysicalInteractionResult
from .data_quality import DataQualityReport
from .insights import InsightReport, RiskFactor, Strength, generate_insights
from .profiles import ConversationRoles, SpeakerProfile

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5
WEIGHT_TOLERANCE = 1e-9

SUB_SCORE_GROUPS: Dict[str, Tuple[str, ...]] = {
    'lead': ('engagement', 'responsiveness', 'supportiveness', 'emotional_regulation'),
    'partner': ('participation', 'expressiveness', 'receptiveness', 'emotional_expression'),
    'synchrony': ('emotional_synchrony', 'behavioral_synchrony', 'linguistic_synchrony', 'temporal_synchrony'),
    'interaction': ('movement_synchronization', 'proximity', 'conversation_balance', 'turn_taking_quality'),
}

# Lead/partner sub-scores are prefixed with their role in the flat metric map
ROLE_GROUPS = ('lead', 'partner')

GRADE_THRESHOLDS = (('A', 0.9), ('B', 0.8), ('C', 0.7))


def _equal_weights(names: Sequence[str]) -> Dict[str, float]:
    return {name: 1.0 / len(names) for name in names}


DEFAULT_WEIGHTS: Dict[str, Dict[str, float]] = {
    **{group: _equal_weights(names) for group, names in SUB_SCORE_GROUPS.items()},
    'overall': _equal_weights(tuple(SUB_SCORE_GROUPS)),
}


@dataclass(frozen=True)
class SubScores:
    """
    Sub-scores by group.

    Attributes:
        groups: Group name -> {sub-score name -> value}
        defaulted: Flat names of sub-scores filled with the neutral value
    """
    groups: Dict[str, Dict[str, float]]
    defaulted: FrozenSet[str] = frozenset()

    def flat(self) -> Dict[str, float]:
        """Flat metric map used by insight rules."""
        flat = {}
        for group, scores in self.groups.items():
            for name, value in scores.items():
                flat[_flat_name(group, name)] = value
        return flat


@dataclass(frozen=True)
class CompositeScore:
    """
    Composite interaction quality assessment.

    Attributes:
        overall: Overall score (0-1)
        interaction: Interaction group score (0-1)
        per_modality: Group name -> group score
        sub_scores: Group name -> {sub-score name -> value}
        findings: Generated findings
        recommendations: Generated recommendations
        risk_factors: Triggered RiskFactor tuple
        strengths: Triggered Strength tuple
        grade: Letter grade ('A'-'D')
        data_quality: DataQualityReport
        roles: ConversationRoles used for lead/partner scores
        weights: Weight tables used
        defaulted_signals: Sub-scores filled with the neutral value
    """
    overall: float
    interaction: float
    per_modality: Dict[str, float]
    sub_scores: Dict[str, Dict[str, float]]
    findings: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    risk_factors: Tuple[RiskFactor, ...]
    strengths: Tuple[Strength, ...]
    grade: str
    data_quality: DataQualityReport
    roles: ConversationRoles = field(default_factory=ConversationRoles)
    weights: Dict[str, Dict[str, float]] = field(default_factory=dict)
    defaulted_signals: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            'overall': self.overall,
            'interaction': self.interaction,
            'grade': self.grade,
            'per_modality': dict(self.per_modality),
            'sub_scores': {g: dict(s) for g, s in self.sub_scores.items()},
            'findings': list(self.findings),
            'recommendations': list(self.recommendations),
            'risk_factors': [r.to_dict() for r in self.risk_factors],
            'strengths': [s.to_dict() for s in self.strengths],
            'data_quality': self.data_quality.to_dict(),
            'roles': self.roles.to_dict(),
            'weights': {t: dict(w) for t, w in self.weights.items()},
            'defaulted_signals': list(self.defaulted_signals),
        }


def resolve_weights(config: Dict = None) -> Dict[str, Dict[str, float]]:
    """
    Weight tables from configuration (scoring.weights), validated.

    A configured table replaces the default table of the same name.

    Raises:
        ValueError: If any table does not sum to 1 or names unknown sub-scores
    """
    if config is None:
        config = {}
    configured = config.get('scoring', {}).get('weights') or {}

    weights = {}
    for table, default in DEFAULT_WEIGHTS.items():
        weights[table] = {k: float(v) for k, v in (configured.get(table) or default).items()}

    unknown_tables = set(configured) - set(DEFAULT_WEIGHTS)
    if unknown_tables:
        raise ValueError(f"Unknown weight tables: {sorted(unknown_tables)}")

    validate_weights(weights)
    return weights


def validate_weights(weights: Mapping[str, Mapping[str, float]]) -> None:
    """
    Check that every weight table covers its sub-scores, has no negative
    weight and sums to 1.

    Raises:
        ValueError: On a weight contract violation
    """
    for table, table_weights in weights.items():
        expected = set(SUB_SCORE_GROUPS) if table == 'overall' else set(SUB_SCORE_GROUPS.get(table, ()))
        if set(table_weights) != expected:
            raise ValueError(
                f"Weight table '{table}' must define exactly {sorted(expected)}, "
                f"got {sorted(table_weights)}"
            )

        negative = sorted(name for name, weight in table_weights.items() if weight < 0)
        if negative:
            raise ValueError(f"Weight table '{table}' has negative weights: {negative}")

        total = float(sum(table_weights.values()))
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"Weight table '{table}' sums to {total!r}, expected 1.0")


def weighted_score(scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    return float(sum(scores[name] * weight for name, weight in weights.items()))


def assign_grade(overall: float) -> str:
    for grade, threshold in GRADE_THRESHOLDS:
        if overall >= threshold:
            return grade
    return 'D'


def compute_sub_scores(
    turns: Sequence[ConversationTurn],
    metrics: TurnTakingMetrics,
    dialogue_flow: DialogueFlow,
    language: LanguageInteractionResult,
    physical: PhysicalInteractionResult,
    roles: ConversationRoles,
    profiles: Dict[str, SpeakerProfile] = None,
    voice_summary: Optional[Mapping] = None,
    config: Dict = None
) -> SubScores:
    """
    Derive all sub-scores from the per-modality analyses.

    Args:
        turns: Segmented conversation turns
        metrics: TurnTakingMetrics
        dialogue_flow: DialogueFlow
        language: LanguageInteractionResult
        physical: PhysicalInteractionResult
        roles: Lead/partner assignment
        profiles: External speaker profiles by speaker id
        voice_summary: External voice analysis summary (emotionalSynchrony)
        config: Configuration dict (scoring.targets)

    Returns:
        SubScores
    """
    if config is None:
        config = {}
    targets = config.get('scoring', {}).get('targets', {})
    expressive_words = targets.get('expressive_word_count', 8.0)
    ideal_gap = targets.get('ideal_gap_sec', 1.0)
    gap_tolerance = targets.get('gap_tolerance_sec', 3.0)
    expected_speakers = config.get('conversation', {}).get('expected_speakers', 2)

    profiles = profiles or {}
    defaulted = set()

    def signal(group: str, name: str, value: Optional[float]) -> float:
        if value is None or not np.isfinite(value):
            defaulted.add(_flat_name(group, name))
            return NEUTRAL_SCORE
        return float(np.clip(value, 0.0, 1.0))

    lead_profile = profiles.get(roles.lead) if roles.lead else None
    partner_profile = profiles.get(roles.partner) if roles.partner else None
    speaker_count = max(len(metrics.turn_distribution), expected_speakers, 1)

    def turn_share(speaker: Optional[str]) -> Optional[float]:
        if speaker is None or metrics.total_turns == 0:
            return None
        return metrics.turn_distribution.get(speaker, 0) / metrics.total_turns * speaker_count

    def type_rate(speaker: Optional[str], *type_names: str) -> Optional[float]:
        counts = language.utterance_types_by_speaker.get(speaker) if speaker else None
        if counts is None or counts.total == 0:
            return None
        return sum(getattr(counts, t) for t in type_names) / counts.total

    lead_stats = language.speaker_stats.get(roles.lead) if roles.lead else None
    partner_stats = language.speaker_stats.get(roles.partner) if roles.partner else None

    # Lead
    lead_latencies = [
        t.gap_duration for t in turns
        if t.speaker_id == roles.lead and t.turn_type is TurnType.RESPONSE and t.gap_duration is not None
    ]
    lead_support_rate = type_rate(roles.lead, 'praise_encouragement', 'instructions')

    lead = {
        'engagement': signal('lead', 'engagement', _first_present(
            lead_profile.engagement if lead_profile else None,
            turn_share(roles.lead)
        )),
        'responsiveness': signal('lead', 'responsiveness', (
            latency_appropriateness(float(np.mean(lead_latencies))) if lead_latencies else None
        )),
        'supportiveness': signal('lead', 'supportiveness', _first_present(
            lead_profile.supportiveness if lead_profile else None,
            2 * lead_support_rate if lead_support_rate is not None else None
        )),
        'emotional_regulation': signal('lead', 'emotional_regulation', (
            lead_profile.stability if lead_profile else None
        )),
    }

    # Partner
    partner_turns = metrics.turn_distribution.get(roles.partner, 0) if roles.partner else 0
    emotion_rate = type_rate(roles.partner, 'emotional_expressions')

    partner = {
        'participation': signal('partner', 'participation', _first_present(
            partner_profile.engagement if partner_profile else None,
            turn_share(roles.partner)
        )),
        'expressiveness': signal('partner', 'expressiveness', (
            partner_stats.avg_word_count / expressive_words
            if partner_stats and partner_stats.utterance_count else None
        )),
        'receptiveness': signal('partner', 'receptiveness', (
            metrics.turn_response.get(roles.partner, 0) / partner_turns if partner_turns else None
        )),
        'emotional_expression': signal('partner', 'emotional_expression', _first_present(
            2 * emotion_rate if emotion_rate is not None else None,
            partner_profile.engagement if partner_profile else None
        )),
    }

    # Synchrony
    has_two_people = physical.tracks_with_data >= 2
    gaps_observed = metrics.total_turns >= 2

    synchrony = {
        'emotional_synchrony': signal('synchrony', 'emotional_synchrony', _voice_value(
            voice_summary, 'emotionalSynchrony', 'emotional_synchrony'
        )),
        'behavioral_synchrony': signal('synchrony', 'behavioral_synchrony', (
            physical.synchrony.sync_score if has_two_people else None
        )),
        'linguistic_synchrony': signal('synchrony', 'linguistic_synchrony', _jaccard(
            lead_stats.content_words if lead_stats else None,
            partner_stats.content_words if partner_stats else None
        )),
        'temporal_synchrony': signal('synchrony', 'temporal_synchrony', (
            1.0 - abs(metrics.average_gap_time - ideal_gap) / gap_tolerance if gaps_observed else None
        )),
    }

    # Interaction
    interaction = {
        'movement_synchronization': signal('interaction', 'movement_synchronization', (
            physical.overall_synchrony if has_two_people else None
        )),
        'proximity': signal('interaction', 'proximity', (
            physical.proximity.proximity_score if physical.matched_pairs else None
        )),
        'conversation_balance': signal('interaction', 'conversation_balance', (
            dialogue_flow.interaction_quality.balance if metrics.total_turns else None
        )),
        'turn_taking_quality': signal('interaction', 'turn_taking_quality', (
            metrics.turn_completion_rate if metrics.total_turns else None
        )),
    }

    if defaulted:
        logger.info(f"Neutral defaults used for: {', '.join(sorted(defaulted))}")

    return SubScores(
        groups={'lead': lead, 'partner': partner, 'synchrony': synchrony, 'interaction': interaction},
        defaulted=frozenset(defaulted)
    )


def compute_composite_score(
    sub_scores: SubScores,
    data_quality: DataQualityReport,
    roles: ConversationRoles = None,
    config: Dict = None
) -> CompositeScore:
    """
    Fuse sub-scores into the composite score with insights.

    Args:
        sub_scores: SubScores from compute_sub_scores
        data_quality: DataQualityReport of the session inputs
        roles: Lead/partner assignment
        config: Configuration dict (scoring.weights)

    Returns:
        CompositeScore

    Raises:
        ValueError: If configured weights violate the weight contract
    """
    weights = resolve_weights(config)

    per_modality = {
        group: weighted_score(scores, weights[group])
        for group, scores in sub_scores.groups.items()
    }
    overall = weighted_score(per_modality, weights['overall'])

    report: InsightReport = generate_insights(sub_scores.flat(), sub_scores.defaulted)
    grade = assign_grade(overall)

    logger.info(
        f"Composite score: overall={overall:.3f} ({grade}), "
        f"interaction={per_modality['interaction']:.3f}, "
        f"data quality={data_quality.quality_flag}"
    )

    return CompositeScore(
        overall=overall,
        interaction=per_modality['interaction'],
        per_modality=per_modality,
        sub_scores={g: dict(s) for g, s in sub_scores.groups.items()},
        findings=report.findings,
        recommendations=report.recommendations,
        risk_factors=report.risk_factors,
        strengths=report.strengths,
        grade=grade,
        data_quality=data_quality,
        roles=roles or ConversationRoles(),
        weights=weights,
        defaulted_signals=tuple(sorted(sub_scores.defaulted))
    )


def latency_appropriateness(latency_sec: float) -> float:
    """
    Convert a mean response latency to an appropriateness score (0-1).

    Typical latency ~1s scores 1.0; very fast replies and long delays
    score lower.
    """
    if latency_sec < 0.5:
        return 0.7
    elif latency_sec < 1.5:
        return 1.0 - abs(latency_sec - 1.0) * 0.2
    elif latency_sec < 3.0:
        return 0.8 - (latency_sec - 1.5) * 0.2
    else:
        return max(0.2, 0.5 - (latency_sec - 3.0) * 0.1)


def _flat_name(group: str, name: str) -> str:
    return f"{group}_{name}" if group in ROLE_GROUPS else name


def _first_present(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None


def _jaccard(a: Optional[FrozenSet[str]], b: Optional[FrozenSet[str]]) -> Optional[float]:
    if a is None or b is None or not (a or b):
        return None
    return len(a & b) / len(a | b)


def _voice_value(voice_summary: Optional[Mapping], *keys: str) -> Optional[float]:
    if not isinstance(voice_summary, Mapping):
        return None
    for key in keys:
        value = voice_summary.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None

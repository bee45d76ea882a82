"""
Rule-based insight generation.

Findings, recommendations, risk factors and strengths are produced by
evaluating fixed rule tables over a flat mapping of sub-score names to
values. Each rule is (metric, comparison, threshold, ...text...).

Rules:
- Are evaluated in table order, so output order is stable
- Are independent; any number may fire
- Skip metrics that are missing or were filled with a neutral default,
  so an absent signal never produces a finding
"""

import logging
import operator
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

COMPARISONS: Dict[str, Callable[[float, float], bool]] = {
    '>': operator.gt,
    '>=': operator.ge,
    '<': operator.lt,
    '<=': operator.le,
}


@dataclass(frozen=True)
class InsightRule:
    metric: str
    comparison: str
    threshold: float
    finding: str
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class RiskRule:
    metric: str
    comparison: str
    threshold: float
    factor: str
    severity: str
    description: str


@dataclass(frozen=True)
class StrengthRule:
    metric: str
    comparison: str
    threshold: float
    area: str
    description: str


@dataclass(frozen=True)
class RiskFactor:
    """
    Triggered risk rule.

    Attributes:
        factor: Short risk name
        severity: 'low', 'moderate' or 'high'
        description: Human-readable description
        metric: Sub-score that triggered the rule
        value: Sub-score value
    """
    factor: str
    severity: str
    description: str
    metric: str
    value: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Strength:
    """
    Triggered strength rule.

    Attributes:
        area: Strength area
        score: Sub-score on a 0-100 scale
        description: Human-readable description
        metric: Sub-score that triggered the rule
    """
    area: str
    score: int
    description: str
    metric: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class InsightReport:
    findings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    risk_factors: Tuple[RiskFactor, ...] = ()
    strengths: Tuple[Strength, ...] = ()


INSIGHT_RULES: Tuple[InsightRule, ...] = (
    InsightRule('lead_engagement', '>', 0.8,
                "The leading participant is actively engaged in the interaction."),
    InsightRule('lead_engagement', '<', 0.5,
                "The leading participant's engagement could be higher.",
                "Join the activity more actively and follow the partner's lead."),
    InsightRule('partner_expressiveness', '>', 0.7,
                "The partner expresses themselves with rich utterances."),
    InsightRule('partner_expressiveness', '<=', 0.7,
                "The partner's verbal expressiveness could be developed further.",
                "Invite the partner to speak more, for example with open questions."),
    InsightRule('emotional_synchrony', '>', 0.8,
                "A strong emotional connection between the participants is observed."),
    InsightRule('emotional_synchrony', '<', 0.6,
                "The emotional connection between the participants could be strengthened.",
                "Respond more closely to the partner's emotional cues."),
    InsightRule('conversation_balance', '<', 0.3,
                "One party dominates the conversation.",
                "Give the quieter participant more opportunities to speak."),
    InsightRule('conversation_balance', '>', 0.7,
                "Conversation turns are well balanced between the participants."),
    InsightRule('behavioral_synchrony', '>', 0.5,
                "The participants frequently move in synchrony."),
    InsightRule('proximity', '<', 0.3,
                "The participants stayed physically far apart.",
                "Choose activities that bring the participants closer together."),
    InsightRule('turn_taking_quality', '<', 0.7,
                "Speakers frequently talk over each other.",
                "Wait for the partner to finish before taking a turn."),
)

RISK_RULES: Tuple[RiskRule, ...] = (
    RiskRule('lead_responsiveness', '<', 0.5,
             'low_lead_responsiveness', 'moderate',
             "Responses to the partner's signals are slow or limited."),
    RiskRule('partner_expressiveness', '<', 0.3,
             'limited_verbal_expression', 'high',
             "The partner produces very short utterances; language support may help."),
    RiskRule('turn_taking_quality', '<', 0.5,
             'frequent_interruptions', 'moderate',
             "Many turns start before the previous speaker has finished."),
    RiskRule('conversation_balance', '<', 0.2,
             'one_sided_conversation', 'low',
             "Almost all turns come from one participant."),
)

STRENGTH_RULES: Tuple[StrengthRule, ...] = (
    StrengthRule('emotional_synchrony', '>', 0.8,
                 'positive_affect_sharing',
                 "The participants share positive emotions actively."),
    StrengthRule('partner_participation', '>', 0.7,
                 'high_participation',
                 "The partner participates actively in the interaction."),
    StrengthRule('conversation_balance', '>', 0.8,
                 'balanced_conversation',
                 "Both participants contribute evenly to the conversation."),
    StrengthRule('behavioral_synchrony', '>', 0.6,
                 'movement_synchrony',
                 "The participants' movements are closely coordinated."),
)


def rule_fires(metric_value: Optional[float], comparison: str, threshold: float) -> bool:
    """
    Evaluate one rule condition.

    Raises:
        ValueError: If the comparison operator is unknown
    """
    if comparison not in COMPARISONS:
        raise ValueError(f"Unknown comparison operator: {comparison!r}")
    if metric_value is None:
        return False
    return COMPARISONS[comparison](metric_value, threshold)


def generate_insights(
    metrics: Mapping[str, float],
    skip_metrics: Iterable[str] = ()
) -> InsightReport:
    """
    Evaluate all rule tables over a flat metric mapping.

    Args:
        metrics: Sub-score name -> value
        skip_metrics: Metrics to ignore (e.g. filled with neutral defaults)

    Returns:
        InsightReport
    """
    skip = frozenset(skip_metrics)

    def value_of(metric: str) -> Optional[float]:
        return None if metric in skip else metrics.get(metric)

    findings = []
    recommendations = []
    for rule in INSIGHT_RULES:
        if rule_fires(value_of(rule.metric), rule.comparison, rule.threshold):
            findings.append(rule.finding)
            if rule.recommendation:
                recommendations.append(rule.recommendation)

    risk_factors = tuple(
        RiskFactor(
            factor=rule.factor,
            severity=rule.severity,
            description=rule.description,
            metric=rule.metric,
            value=float(metrics[rule.metric])
        )
        for rule in RISK_RULES
        if rule_fires(value_of(rule.metric), rule.comparison, rule.threshold)
    )

    strengths = tuple(
        Strength(
            area=rule.area,
            score=int(round(metrics[rule.metric] * 100)),
            description=rule.description,
            metric=rule.metric
        )
        for rule in STRENGTH_RULES
        if rule_fires(value_of(rule.metric), rule.comparison, rule.threshold)
    )

    logger.info(
        f"Insights: {len(findings)} findings, {len(recommendations)} recommendations, "
        f"{len(risk_factors)} risks, {len(strengths)} strengths"
    )

    return InsightReport(
        findings=tuple(findings),
        recommendations=tuple(recommendations),
        risk_factors=risk_factors,
        strengths=strengths
    )

"""
Interaction scoring module.

This package turns per-modality analyses into an interpretable assessment:
1. Speaker profiles and lead/partner roles
2. Sub-scores per group (lead, partner, synchrony, interaction), 0-1
3. Weighted composite score and letter grade
4. Rule-based findings, recommendations, risk factors and strengths
5. Input data quality report

All scores are:
- Interpretable (0-1 scale, 0.5 = neutral when a signal is absent)
- Explainable (fixed weights and threshold tables)
- Deterministic (same input, same output)
"""

from .profiles import SpeakerProfile, ConversationRoles, parse_speaker_profiles, assign_roles
from .data_quality import DataQualityReport, assess_data_quality
from .insights import (
    INSIGHT_RULES,
    RISK_RULES,
    STRENGTH_RULES,
    RiskFactor,
    Strength,
    InsightReport,
    generate_insights
)
from .composite import (
    DEFAULT_WEIGHTS,
    SubScores,
    CompositeScore,
    compute_sub_scores,
    compute_composite_score,
    resolve_weights,
    validate_weights,
    assign_grade,
    latency_appropriateness
)

__all__ = [
    'SpeakerProfile',
    'ConversationRoles',
    'parse_speaker_profiles',
    'assign_roles',
    'DataQualityReport',
    'assess_data_quality',
    'INSIGHT_RULES',
    'RISK_RULES',
    'STRENGTH_RULES',
    'RiskFactor',
    'Strength',
    'InsightReport',
    'generate_insights',
    'DEFAULT_WEIGHTS',
    'SubScores',
    'CompositeScore',
    'compute_sub_scores',
    'compute_composite_score',
    'resolve_weights',
    'validate_weights',
    'assign_grade',
    'latency_appropriateness',
]

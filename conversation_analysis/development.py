"""
Conversation development analysis.

Reads developmental signals out of the turn transcripts of a lead/partner
session (typically an adult guiding a child):
- Scaffolding: how often the lead supports and expands, how often the
  partner answers
- Learning opportunities: new vocabulary, concept introductions, questions,
  answers and elaborations
- Cognitive engagement and social skills: keyword rates per turn
- Interaction dynamics: guidance style, partner engagement, mutual
  enjoyment, learning moments, conflict resolution
- Quality metrics and developmental indicators built from the above and
  the dialogue flow

Keyword rates:
    rate = min(1, occurrences of the vocabulary in all turns / turn count)
Vocabulary terms match on word boundaries of the lower-cased transcript, so
"no" does not match inside "know".

Degraded input:
- No turns: rates and counts are 0, conflict resolution is 1, style is
  SUPPORTIVE, and the language and emotional indicators keep their baselines
- No lead or no partner: scaffolding is all zeros, partner engagement is 0
"""

import logging
import re
from dataclasses import dataclass, asdict, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .dialogue_flow import DialogueFlow
from .turn_segmentation import ConversationTurn, TurnType

logger = logging.getLogger(__name__)

SCAFFOLDING_WORDS = ('slowly', 'together', "let's", 'let me help', 'try again', 'you can')
EXPANSION_WORDS = ('and', 'also', 'more', 'again', 'or', 'what if')
CONCEPT_PHRASES = ('this is', 'that is', 'these are', 'it is called', "it's called", 'means')

PROBLEM_SOLVING_WORDS = ('how', 'why', 'way', 'solve', 'think')
CREATIVITY_WORDS = ('new', 'different', 'make', 'imagine', 'idea')
CRITICAL_THINKING_WORDS = ('think about', 'why', 'how', 'what if', 'then')
CURIOSITY_WORDS = ('wonder', 'cool', 'interesting', 'wow', "don't know")

POLITENESS_WORDS = ('thank you', 'thanks', 'sorry', 'please', 'hello')
COOPERATION_WORDS = ('together', 'help', "let's", 'we', 'us')
EMPATHY_WORDS = ('understand', 'feel', 'feeling', 'sad', 'mind')
SHARING_WORDS = ('share', 'together', 'your turn', 'my turn', 'give')
NEGOTIATION_WORDS = ('or', 'instead', 'what if', 'how about', 'switch')

DIRECTIVE_WORDS = ('must', 'have to', "don't", 'stop', 'do it', 'no')
SUPPORTIVE_WORDS = ('good', 'well done', 'let me help', 'together', 'great')
AUTHORITATIVE_WORDS = ('because', 'the reason', 'think about')
PERMISSIVE_WORDS = ("it's fine", 'whatever', 'if you want', 'up to you')

ENJOYMENT_WORDS = ('fun', 'like', 'yay', 'haha', 'happy', 'love', 'excited')
LEARNING_MOMENT_WORDS = ('learn', 'learned', 'know', 'new', 'first time', "didn't know", 'wow')
CONFLICT_WORDS = ('no', "don't want", 'not', 'hard', 'hate')
RESOLUTION_WORDS = ("it's okay", 'understand', 'sorry', 'again', 'together')
EMOTION_WORDS = ('happy', 'sad', 'angry', 'scared', 'love', 'fun', 'yay', 'upset', 'excited')

# First entry wins ties, so a lead with no style keywords is SUPPORTIVE
GUIDANCE_STYLES = (
    ('SUPPORTIVE', SUPPORTIVE_WORDS),
    ('DIRECTIVE', DIRECTIVE_WORDS),
    ('AUTHORITATIVE', AUTHORITATIVE_WORDS),
    ('PERMISSIVE', PERMISSIVE_WORDS),
)

INDICATOR_AREAS = {
    'language': (('speech frequency', 'vocabulary diversity', 'sentence structure'),
                 ('Ask more questions.', 'Introduce new words.')),
    'social': (('turn taking', 'joint attention', 'cooperative play'),
               ('Practice social rules.', 'Play more cooperative games.')),
    'emotional': (('emotional expression', 'emotion recognition', 'emotional regulation'),
                  ('Build emotion vocabulary.', 'Practice calming techniques.')),
    'cognitive': (('problem solving', 'attention', 'memory'),
                  ('Add problem-solving play.', 'Try activities that build focus.')),
}


@dataclass(frozen=True)
class Scaffolding:
    lead_scaffolding: float = 0.0
    partner_responsiveness: float = 0.0
    effectiveness: float = 0.0
    language_expansion: float = 0.0


@dataclass(frozen=True)
class LearningOpportunities:
    """
    Learning opportunities in the conversation.

    Attributes:
        new_vocabulary: Distinct long words in first-use order
        concept_introductions: Concept phrases that occur at least once
        questions: Question marks across all transcripts
        answers: RESPONSE turns longer than the answer length
        elaborations: Turns longer than the elaboration length
    """
    new_vocabulary: Tuple[str, ...] = ()
    concept_introductions: Tuple[str, ...] = ()
    questions: int = 0
    answers: int = 0
    elaborations: int = 0


@dataclass(frozen=True)
class CognitiveEngagement:
    problem_solving: float = 0.0
    creativity: float = 0.0
    critical_thinking: float = 0.0
    curiosity: float = 0.0


@dataclass(frozen=True)
class SocialSkills:
    politeness: float = 0.0
    cooperation: float = 0.0
    empathy: float = 0.0
    sharing: float = 0.0
    negotiation: float = 0.0


@dataclass(frozen=True)
class InteractionDynamics:
    """
    Lead/partner dynamics.

    Attributes:
        guidance_style: AUTHORITATIVE | SUPPORTIVE | DIRECTIVE | PERMISSIVE
        partner_engagement: Weighted participation, initiation and turn length (0-1)
        mutual_enjoyment: Enjoyment keyword count over saturation (0-1)
        learning_moments: Number of turns mentioning learning
        conflict_resolution: Resolutions per conflict, capped at 1 (1 without conflict)
    """
    guidance_style: str = 'SUPPORTIVE'
    partner_engagement: float = 0.0
    mutual_enjoyment: float = 0.0
    learning_moments: int = 0
    conflict_resolution: float = 1.0


@dataclass(frozen=True)
class QualityMetrics:
    overall_quality: float = 0.0
    developmental_appropriateness: float = 0.0
    interaction_richness: float = 0.0
    educational_value: float = 0.0


@dataclass(frozen=True)
class DevelopmentalIndicator:
    score: float
    areas: Tuple[str, ...]
    recommendations: Tuple[str, ...]


@dataclass(frozen=True)
class ConversationDevelopment:
    """Complete development analysis of a session."""
    scaffolding: Scaffolding = field(default_factory=Scaffolding)
    learning: LearningOpportunities = field(default_factory=LearningOpportunities)
    cognitive: CognitiveEngagement = field(default_factory=CognitiveEngagement)
    social: SocialSkills = field(default_factory=SocialSkills)
    dynamics: InteractionDynamics = field(default_factory=InteractionDynamics)
    quality: QualityMetrics = field(default_factory=QualityMetrics)
    indicators: Dict[str, DevelopmentalIndicator] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ('new_vocabulary', 'concept_introductions'):
            data['learning'][key] = list(data['learning'][key])
        for indicator in data['indicators'].values():
            indicator['areas'] = list(indicator['areas'])
            indicator['recommendations'] = list(indicator['recommendations'])
        return data


def analyze_conversation_development(
    turns: Sequence[ConversationTurn],
    dialogue_flow: DialogueFlow,
    lead: Optional[str] = None,
    partner: Optional[str] = None,
    config: Dict = None
) -> ConversationDevelopment:
    """
    Analyze the developmental content of a conversation.

    Args:
        turns: Time-ordered ConversationTurn sequence
        dialogue_flow: DialogueFlow computed from the same turns
        lead: Speaker id of the guiding participant (None if unknown)
        partner: Speaker id of the guided participant (None if unknown)
        config: Configuration dict (conversation.development)

    Returns:
        ConversationDevelopment
    """
    if config is None:
        config = {}

    if not turns:
        logger.warning("No turns provided for conversation development analysis")

    scaffolding = analyze_scaffolding(turns, lead, partner)
    learning = analyze_learning_opportunities(turns, config)
    cognitive = analyze_cognitive_engagement(turns)
    social = analyze_social_skills(turns)
    dynamics = analyze_interaction_dynamics(turns, lead, partner, config)
    quality = compute_quality_metrics(turns, dialogue_flow, scaffolding, learning, cognitive, social)
    indicators = compute_developmental_indicators(turns, dialogue_flow, cognitive, partner)

    logger.info(
        f"Conversation development: style {dynamics.guidance_style}, "
        f"scaffolding {scaffolding.effectiveness:.3f}, "
        f"quality {quality.overall_quality:.3f}"
    )

    return ConversationDevelopment(
        scaffolding=scaffolding,
        learning=learning,
        cognitive=cognitive,
        social=social,
        dynamics=dynamics,
        quality=quality,
        indicators=indicators
    )


def analyze_scaffolding(
    turns: Sequence[ConversationTurn],
    lead: Optional[str],
    partner: Optional[str]
) -> Scaffolding:
    """
    Scaffolding between lead and partner.

    lead_scaffolding = lead turns with scaffolding words / lead turns
    partner_responsiveness = partner RESPONSE turns / partner turns
    effectiveness = mean of the two
    language_expansion = lead turns with expansion words / lead turns
    """
    if lead is None or partner is None:
        return Scaffolding()

    lead_turns = [t for t in turns if t.speaker_id == lead]
    partner_turns = [t for t in turns if t.speaker_id == partner]

    lead_scaffolding = _share(lead_turns, lambda t: count_terms(t.transcript, SCAFFOLDING_WORDS) > 0)
    responsiveness = _share(partner_turns, lambda t: t.turn_type is TurnType.RESPONSE)

    return Scaffolding(
        lead_scaffolding=lead_scaffolding,
        partner_responsiveness=responsiveness,
        effectiveness=(lead_scaffolding + responsiveness) / 2,
        language_expansion=_share(lead_turns, lambda t: count_terms(t.transcript, EXPANSION_WORDS) > 0)
    )


def analyze_learning_opportunities(
    turns: Sequence[ConversationTurn],
    config: Dict = None
) -> LearningOpportunities:
    """Vocabulary, concept, question, answer and elaboration counts."""
    if config is None:
        config = {}
    dev_config = config.get('conversation', {}).get('development', {})
    min_word_length = dev_config.get('vocabulary_min_length', 6)
    max_vocabulary = dev_config.get('max_new_vocabulary', 10)
    answer_chars = dev_config.get('answer_chars', 10)
    elaboration_chars = dev_config.get('elaboration_chars', 50)

    all_text = ' '.join(t.transcript for t in turns)

    vocabulary: List[str] = []
    for word in _tokens(all_text):
        if len(word) >= min_word_length and word not in vocabulary:
            vocabulary.append(word)
            if len(vocabulary) == max_vocabulary:
                break

    return LearningOpportunities(
        new_vocabulary=tuple(vocabulary),
        concept_introductions=tuple(p for p in CONCEPT_PHRASES if count_terms(all_text, (p,))),
        questions=all_text.count('?'),
        answers=sum(
            1 for t in turns
            if t.turn_type is TurnType.RESPONSE and len(t.transcript) > answer_chars
        ),
        elaborations=sum(1 for t in turns if len(t.transcript) > elaboration_chars)
    )


def analyze_cognitive_engagement(turns: Sequence[ConversationTurn]) -> CognitiveEngagement:
    return CognitiveEngagement(
        problem_solving=keyword_rate(turns, PROBLEM_SOLVING_WORDS),
        creativity=keyword_rate(turns, CREATIVITY_WORDS),
        critical_thinking=keyword_rate(turns, CRITICAL_THINKING_WORDS),
        curiosity=keyword_rate(turns, CURIOSITY_WORDS)
    )


def analyze_social_skills(turns: Sequence[ConversationTurn]) -> SocialSkills:
    return SocialSkills(
        politeness=keyword_rate(turns, POLITENESS_WORDS),
        cooperation=keyword_rate(turns, COOPERATION_WORDS),
        empathy=keyword_rate(turns, EMPATHY_WORDS),
        sharing=keyword_rate(turns, SHARING_WORDS),
        negotiation=keyword_rate(turns, NEGOTIATION_WORDS)
    )


def analyze_interaction_dynamics(
    turns: Sequence[ConversationTurn],
    lead: Optional[str],
    partner: Optional[str],
    config: Dict = None
) -> InteractionDynamics:
    """
    Guidance style, partner engagement, enjoyment, learning and conflict.

    partner_engagement = 0.4 * turn share + 0.3 * initiation share
        + 0.3 * min(1, mean transcript length / engagement length)
    """
    if config is None:
        config = {}
    dev_config = config.get('conversation', {}).get('development', {})
    engagement_chars = dev_config.get('engagement_length_chars', 50)
    enjoyment_saturation = dev_config.get('enjoyment_saturation', 10)

    all_text = ' '.join(t.transcript for t in turns)

    conflicts = count_terms(all_text, CONFLICT_WORDS)
    resolutions = count_terms(all_text, RESOLUTION_WORDS)

    return InteractionDynamics(
        guidance_style=classify_guidance_style(turns, lead),
        partner_engagement=_partner_engagement(turns, partner, engagement_chars),
        mutual_enjoyment=min(1.0, count_terms(all_text, ENJOYMENT_WORDS) / enjoyment_saturation),
        learning_moments=sum(1 for t in turns if count_terms(t.transcript, LEARNING_MOMENT_WORDS)),
        conflict_resolution=min(1.0, resolutions / conflicts) if conflicts else 1.0
    )


def classify_guidance_style(turns: Sequence[ConversationTurn], lead: Optional[str]) -> str:
    """Style whose keywords occur most often in the lead's turns."""
    if lead is None:
        return GUIDANCE_STYLES[0][0]

    lead_text = ' '.join(t.transcript for t in turns if t.speaker_id == lead)
    counts = [count_terms(lead_text, vocabulary) for _, vocabulary in GUIDANCE_STYLES]

    return GUIDANCE_STYLES[int(np.argmax(counts))][0]


def compute_quality_metrics(
    turns: Sequence[ConversationTurn],
    dialogue_flow: DialogueFlow,
    scaffolding: Scaffolding,
    learning: LearningOpportunities,
    cognitive: CognitiveEngagement,
    social: SocialSkills
) -> QualityMetrics:
    """
    Overall conversation quality.

    overall = 0.3 * balance + 0.3 * responsiveness + 0.4 * naturalness
    developmental = 0.4 * scaffolding effectiveness + 0.3 * curiosity + 0.3 * cooperation
    richness = min(1, (validations + encouragements + expansions) / turns)
    educational = min(1, (questions + answers + elaborations) / turns)
    """
    quality = dialogue_flow.interaction_quality
    support = dialogue_flow.supportive_interactions
    turn_count = len(turns)

    richness = support.validations + support.encouragements + support.expansions
    educational = learning.questions + learning.answers + learning.elaborations

    return QualityMetrics(
        overall_quality=(
            quality.balance * 0.3 + quality.responsiveness * 0.3
            + dialogue_flow.rhythm.naturalness * 0.4
        ),
        developmental_appropriateness=(
            scaffolding.effectiveness * 0.4 + cognitive.curiosity * 0.3
            + social.cooperation * 0.3
        ),
        interaction_richness=min(1.0, richness / turn_count) if turn_count else 0.0,
        educational_value=min(1.0, educational / turn_count) if turn_count else 0.0
    )


def compute_developmental_indicators(
    turns: Sequence[ConversationTurn],
    dialogue_flow: DialogueFlow,
    cognitive: CognitiveEngagement,
    partner: Optional[str]
) -> Dict[str, DevelopmentalIndicator]:
    """
    Language, social, emotional and cognitive indicators (scores 0-1).

    language = min(1, 0.4 + 0.1 * partner turns)
    social = mean(responsiveness, mutuality, balance)
    emotional = min(1, 0.5 + 0.15 * partner turns with emotion words)
    cognitive = mean of the cognitive engagement rates
    """
    partner_turns = [t for t in turns if partner is not None and t.speaker_id == partner]
    quality = dialogue_flow.interaction_quality
    emotional_turns = sum(1 for t in partner_turns if count_terms(t.transcript, EMOTION_WORDS))

    scores = {
        'language': min(1.0, 0.4 + 0.1 * len(partner_turns)),
        'social': float(np.mean([quality.responsiveness, quality.mutuality, quality.balance])),
        'emotional': min(1.0, 0.5 + 0.15 * emotional_turns),
        'cognitive': float(np.mean(list(vars(cognitive).values()))),
    }

    return {
        name: DevelopmentalIndicator(
            score=scores[name],
            areas=areas,
            recommendations=recommendations
        )
        for name, (areas, recommendations) in INDICATOR_AREAS.items()
    }


def keyword_rate(turns: Sequence[ConversationTurn], vocabulary: Iterable[str]) -> float:
    """Occurrences of the vocabulary per turn, capped at 1 (0 without turns)."""
    if not turns:
        return 0.0
    all_text = ' '.join(t.transcript for t in turns)
    return min(1.0, count_terms(all_text, vocabulary) / len(turns))


def count_terms(text: str, vocabulary: Iterable[str]) -> int:
    """Total word-boundary occurrences of each vocabulary term in text."""
    normalized = ' '.join(_tokens(text))
    return sum(
        len(re.findall(rf"(?<![\w']){re.escape(term)}(?![\w'])", normalized))
        for term in vocabulary
    )


def _tokens(text: str) -> List[str]:
    return re.findall(r"[\w']+", text.lower())


def _partner_engagement(
    turns: Sequence[ConversationTurn],
    partner: Optional[str],
    engagement_chars: float
) -> float:
    partner_turns = [t for t in turns if partner is not None and t.speaker_id == partner]
    if not partner_turns:
        return 0.0

    participation = len(partner_turns) / len(turns)
    initiation = _share(partner_turns, lambda t: t.turn_type is TurnType.INITIATION)
    mean_length = float(np.mean([len(t.transcript) for t in partner_turns]))

    return participation * 0.4 + initiation * 0.3 + min(1.0, mean_length / engagement_chars) * 0.3


def _share(turns: Sequence[ConversationTurn], predicate) -> float:
    if not turns:
        return 0.0
    return sum(1 for t in turns if predicate(t)) / len(turns)

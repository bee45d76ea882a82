"""
Unit tests for conversation development analysis.

Tests scaffolding, learning opportunities, keyword rates, interaction
dynamics, quality metrics and developmental indicators.
"""

import json
import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from conversation_analysis import (
    ConversationTurn,
    TurnType,
    analyze_conversation_development,
    classify_guidance_style,
    count_terms
)
from conversation_analysis.development import (
    Scaffolding,
    analyze_cognitive_engagement,
    analyze_interaction_dynamics,
    analyze_learning_opportunities,
    analyze_scaffolding
)
from conversation_analysis.dialogue_flow import (
    ConversationDominance,
    ConversationRhythm,
    DialogueFlow,
    InteractionQuality,
    SupportiveInteractions
)

LEAD = 'speaker_1'
PARTNER = 'speaker_2'


def turn(speaker, text, turn_type=TurnType.RESPONSE, start=0.0):
    return ConversationTurn(
        speaker_id=speaker,
        start_time=start,
        end_time=start + 1.0,
        duration=1.0,
        transcript=text,
        turn_type=turn_type,
        word_count=len(text.split())
    )


def building_session():
    """Lead guides a tower build; partner answers twice."""
    return (
        turn(LEAD, "let's build a tower together", TurnType.INITIATION, 0.0),
        turn(PARTNER, "okay", start=2.0),
        turn(LEAD, "good job, and now a bigger one", start=4.0),
        turn(PARTNER, "wow this is fun", start=6.0),
    )


def dialogue_flow(**support):
    return DialogueFlow(
        rhythm=ConversationRhythm(naturalness=1.0),
        interaction_quality=InteractionQuality(
            responsiveness=0.5, mutuality=1.0, synchronization=1.0, balance=1.0
        ),
        dominance=ConversationDominance(),
        supportive_interactions=SupportiveInteractions(**support)
    )


class TestKeywordMatching(unittest.TestCase):
    """Test vocabulary term counting."""

    def test_word_boundaries(self):
        self.assertEqual(count_terms("I know it", ('no',)), 0)
        self.assertEqual(count_terms("No, no way", ('no',)), 2)

    def test_phrases(self):
        self.assertEqual(count_terms("Let me help, let me help!", ('let me help',)), 2)
        self.assertEqual(count_terms("let me think", ('let me help',)), 0)

    def test_cognitive_rates(self):
        turns = (turn(LEAD, "why is it red"), turn(PARTNER, "how do we make it"))
        cognitive = analyze_cognitive_engagement(turns)

        self.assertAlmostEqual(cognitive.problem_solving, 1.0)
        self.assertAlmostEqual(cognitive.creativity, 0.5)
        self.assertAlmostEqual(cognitive.critical_thinking, 1.0)
        self.assertEqual(cognitive.curiosity, 0.0)


class TestScaffolding(unittest.TestCase):
    """Test lead scaffolding and partner responsiveness."""

    def test_building_session(self):
        scaffolding = analyze_scaffolding(building_session(), LEAD, PARTNER)

        self.assertAlmostEqual(scaffolding.lead_scaffolding, 0.5)
        self.assertAlmostEqual(scaffolding.partner_responsiveness, 1.0)
        self.assertAlmostEqual(scaffolding.effectiveness, 0.75)
        self.assertAlmostEqual(scaffolding.language_expansion, 0.5)

    def test_missing_partner(self):
        self.assertEqual(analyze_scaffolding(building_session(), LEAD, None), Scaffolding())

    def test_silent_lead(self):
        scaffolding = analyze_scaffolding(building_session(), 'speaker_9', PARTNER)

        self.assertEqual(scaffolding.lead_scaffolding, 0.0)
        self.assertAlmostEqual(scaffolding.effectiveness, 0.5)


class TestLearningOpportunities(unittest.TestCase):
    """Test vocabulary, concept and answer counts."""

    def test_building_session(self):
        learning = analyze_learning_opportunities(building_session())

        self.assertEqual(learning.new_vocabulary, ('together', 'bigger'))
        self.assertEqual(learning.concept_introductions, ('this is',))
        self.assertEqual(learning.questions, 0)
        self.assertEqual(learning.answers, 2)
        self.assertEqual(learning.elaborations, 0)

    def test_vocabulary_limit_from_config(self):
        config = {'conversation': {'development': {'max_new_vocabulary': 1}}}
        learning = analyze_learning_opportunities(building_session(), config)

        self.assertEqual(learning.new_vocabulary, ('together',))

    def test_questions(self):
        learning = analyze_learning_opportunities((turn(LEAD, "what is it? where?"),))
        self.assertEqual(learning.questions, 2)


class TestInteractionDynamics(unittest.TestCase):
    """Test guidance style and engagement signals."""

    def test_building_session(self):
        dynamics = analyze_interaction_dynamics(building_session(), LEAD, PARTNER)

        self.assertEqual(dynamics.guidance_style, 'SUPPORTIVE')
        self.assertAlmostEqual(dynamics.partner_engagement, 0.2 + 0.3 * 9.5 / 50)
        self.assertAlmostEqual(dynamics.mutual_enjoyment, 0.1)
        self.assertEqual(dynamics.learning_moments, 1)
        self.assertEqual(dynamics.conflict_resolution, 1.0)

    def test_directive_style(self):
        turns = (turn(LEAD, "stop, you have to do it now"),)
        self.assertEqual(classify_guidance_style(turns, LEAD), 'DIRECTIVE')

    def test_authoritative_style(self):
        turns = (turn(LEAD, "because the tower is tall, think about it"),)
        self.assertEqual(classify_guidance_style(turns, LEAD), 'AUTHORITATIVE')

    def test_style_without_lead(self):
        turns = (turn(PARTNER, "stop it"),)
        self.assertEqual(classify_guidance_style(turns, None), 'SUPPORTIVE')

    def test_partial_conflict_resolution(self):
        turns = (turn(PARTNER, "no"), turn(LEAD, "not that one"), turn(PARTNER, "sorry"))
        dynamics = analyze_interaction_dynamics(turns, LEAD, PARTNER)

        self.assertAlmostEqual(dynamics.conflict_resolution, 0.5)

    def test_no_partner_engagement(self):
        dynamics = analyze_interaction_dynamics(building_session(), LEAD, None)
        self.assertEqual(dynamics.partner_engagement, 0.0)


class TestConversationDevelopment(unittest.TestCase):
    """Test the combined development analysis."""

    def test_quality_metrics(self):
        flow = dialogue_flow(validations=1, encouragements=1, expansions=1)
        quality = analyze_conversation_development(building_session(), flow, LEAD, PARTNER).quality

        self.assertAlmostEqual(quality.overall_quality, 0.85)
        self.assertAlmostEqual(quality.developmental_appropriateness, 0.525)
        self.assertAlmostEqual(quality.interaction_richness, 0.75)
        self.assertAlmostEqual(quality.educational_value, 0.5)

    def test_developmental_indicators(self):
        indicators = analyze_conversation_development(
            building_session(), dialogue_flow(), LEAD, PARTNER
        ).indicators

        self.assertEqual(list(indicators), ['language', 'social', 'emotional', 'cognitive'])
        self.assertAlmostEqual(indicators['language'].score, 0.6)
        self.assertAlmostEqual(indicators['social'].score, 2.5 / 3)
        self.assertAlmostEqual(indicators['emotional'].score, 0.65)
        self.assertAlmostEqual(indicators['cognitive'].score, 0.0625)
        self.assertIn('turn taking', indicators['social'].areas)

    def test_empty_session(self):
        development = analyze_conversation_development((), dialogue_flow())

        self.assertEqual(development.scaffolding, Scaffolding())
        self.assertEqual(development.dynamics.guidance_style, 'SUPPORTIVE')
        self.assertEqual(development.dynamics.conflict_resolution, 1.0)
        self.assertEqual(development.learning.new_vocabulary, ())
        self.assertEqual(development.quality.interaction_richness, 0.0)
        self.assertEqual(development.quality.educational_value, 0.0)
        self.assertEqual(development.cognitive.curiosity, 0.0)

    def test_to_dict_json(self):
        development = analyze_conversation_development(building_session(), dialogue_flow(), LEAD, PARTNER)
        decoded = json.loads(json.dumps(development.to_dict()))

        self.assertEqual(decoded['learning']['new_vocabulary'], ['together', 'bigger'])
        self.assertEqual(decoded['dynamics']['guidance_style'], 'SUPPORTIVE')
        self.assertEqual(set(decoded['indicators']), {'language', 'social', 'emotional', 'cognitive'})


if __name__ == '__main__':
    unittest.main()

"""
Unit tests for interaction scoring.

Tests profiles and roles, weight tables, insight rules, grading and
data quality.
"""

import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from scoring import (
    DEFAULT_WEIGHTS,
    INSIGHT_RULES,
    assess_data_quality,
    assign_grade,
    assign_roles,
    generate_insights,
    latency_appropriateness,
    parse_speaker_profiles,
    resolve_weights,
    validate_weights
)
from scoring.insights import rule_fires


class TestSpeakerProfiles(unittest.TestCase):
    """Test profile parsing and role assignment."""

    def setUp(self):
        self.raw_profiles = [
            {'speakerId': 1, 'demographic': {'age': 'child'},
             'emotionalProfile': {'engagement': 1.4, 'stability': 0.6}},
            {'speakerId': 2, 'demographic': {'age': 'adult'},
             'emotionalProfile': {'engagement': 0.9}, 'supportiveness': 0.7},
            'not a profile',
        ]

    def test_parse_profiles(self):
        profiles = parse_speaker_profiles(self.raw_profiles)

        self.assertEqual(set(profiles), {'speaker_1', 'speaker_2'})
        self.assertEqual(profiles['speaker_1'].engagement, 1.0)
        self.assertEqual(profiles['speaker_1'].age_group, 'child')
        self.assertTrue(profiles['speaker_2'].is_adult)
        self.assertIsNone(profiles['speaker_2'].stability)
        self.assertEqual(profiles['speaker_2'].supportiveness, 0.7)

    def test_parse_mapping_with_speakers(self):
        profiles = parse_speaker_profiles({'speakers': self.raw_profiles[:1]})
        self.assertEqual(list(profiles), ['speaker_1'])

    def test_parse_empty(self):
        self.assertEqual(parse_speaker_profiles(None), {})

    def test_adult_profile_leads(self):
        profiles = parse_speaker_profiles(self.raw_profiles)
        roles = assign_roles({'speaker_1': 5, 'speaker_2': 2}, profiles)

        self.assertEqual(roles.lead, 'speaker_2')
        self.assertEqual(roles.partner, 'speaker_1')

    def test_most_active_leads_without_profiles(self):
        roles = assign_roles({'speaker_1': 2, 'speaker_2': 5})

        self.assertEqual(roles.lead, 'speaker_2')
        self.assertEqual(roles.partner, 'speaker_1')

    def test_tie_breaks_by_lowest_id(self):
        roles = assign_roles({'speaker_2': 3, 'speaker_1': 3})
        self.assertEqual(roles.lead, 'speaker_1')

    def test_single_and_no_speaker(self):
        self.assertIsNone(assign_roles({'speaker_1': 3}).partner)
        self.assertIsNone(assign_roles({}).lead)


class TestWeights(unittest.TestCase):
    """Test weight tables."""

    def test_default_tables_sum_to_one(self):
        for table, weights in DEFAULT_WEIGHTS.items():
            self.assertAlmostEqual(sum(weights.values()), 1.0, places=9, msg=table)

    def test_default_validates(self):
        validate_weights(DEFAULT_WEIGHTS)
        self.assertEqual(resolve_weights(None), DEFAULT_WEIGHTS)

    def test_configured_table_replaces_default(self):
        config = {'scoring': {'weights': {'overall': {
            'lead': 0.1, 'partner': 0.2, 'synchrony': 0.3, 'interaction': 0.4
        }}}}
        weights = resolve_weights(config)

        self.assertEqual(weights['overall']['interaction'], 0.4)
        self.assertEqual(weights['lead'], DEFAULT_WEIGHTS['lead'])

    def test_bad_sum_raises(self):
        config = {'scoring': {'weights': {'overall': {
            'lead': 0.5, 'partner': 0.5, 'synchrony': 0.5, 'interaction': 0.0
        }}}}
        with self.assertRaises(ValueError):
            resolve_weights(config)

    def test_negative_weight_raises(self):
        config = {'scoring': {'weights': {'overall': {
            'lead': 1.5, 'partner': -0.5, 'synchrony': 0.0, 'interaction': 0.0
        }}}}
        with self.assertRaises(ValueError):
            resolve_weights(config)

    def test_missing_key_raises(self):
        config = {'scoring': {'weights': {'interaction': {
            'proximity': 0.5, 'conversation_balance': 0.5
        }}}}
        with self.assertRaises(ValueError):
            resolve_weights(config)

    def test_unknown_table_raises(self):
        with self.assertRaises(ValueError):
            resolve_weights({'scoring': {'weights': {'emotion': {'x': 1.0}}}})


class TestGradeAndLatency(unittest.TestCase):
    """Test grade thresholds and latency appropriateness."""

    def test_grades(self):
        self.assertEqual(assign_grade(0.95), 'A')
        self.assertEqual(assign_grade(0.9), 'A')
        self.assertEqual(assign_grade(0.85), 'B')
        self.assertEqual(assign_grade(0.7), 'C')
        self.assertEqual(assign_grade(0.5), 'D')

    def test_latency_appropriateness(self):
        self.assertAlmostEqual(latency_appropriateness(1.0), 1.0)
        self.assertAlmostEqual(latency_appropriateness(0.2), 0.7)
        self.assertAlmostEqual(latency_appropriateness(2.0), 0.7)
        self.assertAlmostEqual(latency_appropriateness(10.0), 0.2)


class TestInsights(unittest.TestCase):
    """Test rule tables."""

    def test_positive_engagement_finding(self):
        report = generate_insights({'lead_engagement': 0.9})

        self.assertEqual(len(report.findings), 1)
        self.assertIn("actively engaged", report.findings[0])
        self.assertEqual(report.recommendations, ())

    def test_dominated_conversation(self):
        report = generate_insights({'conversation_balance': 0.1})

        self.assertIn("One party dominates the conversation.", report.findings)
        self.assertIn("Give the quieter participant more opportunities to speak.", report.recommendations)
        self.assertEqual([r.factor for r in report.risk_factors], ['one_sided_conversation'])

    def test_responsiveness_risk(self):
        report = generate_insights({'lead_responsiveness': 0.4})

        self.assertEqual(len(report.risk_factors), 1)
        risk = report.risk_factors[0]
        self.assertEqual(risk.factor, 'low_lead_responsiveness')
        self.assertEqual(risk.severity, 'moderate')
        self.assertEqual(risk.value, 0.4)

    def test_strength_score(self):
        report = generate_insights({'partner_participation': 0.85})

        self.assertEqual(report.strengths[0].area, 'high_participation')
        self.assertEqual(report.strengths[0].score, 85)

    def test_skipped_metrics_do_not_fire(self):
        report = generate_insights({'lead_responsiveness': 0.4}, skip_metrics={'lead_responsiveness'})
        self.assertEqual(report.risk_factors, ())

    def test_rule_order_stable(self):
        metrics = {rule.metric: 0.0 for rule in INSIGHT_RULES}
        self.assertEqual(generate_insights(metrics), generate_insights(dict(reversed(list(metrics.items())))))

    def test_unknown_comparison_raises(self):
        with self.assertRaises(ValueError):
            rule_fires(0.5, '==', 0.5)


class TestDataQuality(unittest.TestCase):
    """Test data quality assessment."""

    def test_no_data(self):
        report = assess_data_quality(0, 0, 0, 0, 0, 0)

        self.assertEqual(report.overall_quality, 0.0)
        self.assertEqual(report.confidence, 0.0)
        self.assertEqual(report.quality_flag, 'poor')

    def test_complete_data(self):
        report = assess_data_quality(
            word_count=10, speaker_count=2, turn_count=4,
            total_frames=20, tracks_with_data=2, matched_pairs=10
        )

        self.assertAlmostEqual(report.speech_quality, 0.88)
        self.assertAlmostEqual(report.video_quality, 0.8)
        self.assertAlmostEqual(report.overall_quality, 0.84)
        self.assertAlmostEqual(report.confidence, 0.756)
        self.assertEqual(report.quality_flag, 'excellent')

    def test_speech_only(self):
        report = assess_data_quality(5, 1, 1, 0, 0, 0)

        self.assertAlmostEqual(report.speech_quality, 0.62)
        self.assertEqual(report.video_quality, 0.0)
        self.assertEqual(report.quality_flag, 'poor')

    def test_caps(self):
        report = assess_data_quality(500, 5, 50, 1000, 4, 400)

        self.assertAlmostEqual(report.speech_quality, 1.0)
        self.assertAlmostEqual(report.video_quality, 1.0)


if __name__ == '__main__':
    unittest.main()

"""
End-to-end session analysis.

Chains the analysis stages for one recorded two-person session:
1. Speech ingestion -> turn segmentation -> turn-taking metrics
2. Dialogue flow (balance, rhythm, supportive interactions)
3. Tracking ingestion -> physical interaction (proximity, synchrony, activity)
4. Language statistics over the turn transcripts
5. Roles and conversation development for the lead/partner pair
6. Sub-scores, data quality and composite score

Engineering approach:
- Pure function of its inputs (no I/O, no shared state)
- Absent or degraded inputs fall back to documented stage defaults
- Only contract violations raise (timestamp shape, weight tables)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from conversation_analysis import (
    ConversationDevelopment,
    ConversationTurn,
    DialogueFlow,
    TurnTakingMetrics,
    analyze_conversation_development,
    analyze_dialogue_flow,
    compute_turn_taking_metrics,
    extract_speech_words,
    group_turns_by_speaker,
    segment_turns
)
from language_analysis import (
    LanguageInteractionResult,
    analyze_language_interaction,
    entries_from_turns
)
from physical_analysis import (
    PhysicalInteractionResult,
    analyze_physical_interaction,
    extract_person_tracks
)
from scoring import (
    CompositeScore,
    assess_data_quality,
    assign_roles,
    compute_composite_score,
    compute_sub_scores,
    parse_speaker_profiles
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionAnalysis:
    """
    Complete analysis of one session.

    Attributes:
        turns: Segmented conversation turns
        turns_by_speaker: Read-only speaker -> turns mapping
        turn_taking: TurnTakingMetrics
        dialogue_flow: DialogueFlow
        physical: PhysicalInteractionResult
        language: LanguageInteractionResult
        development: ConversationDevelopment
        composite: CompositeScore
    """
    turns: Tuple[ConversationTurn, ...]
    turns_by_speaker: Mapping
    turn_taking: TurnTakingMetrics
    dialogue_flow: DialogueFlow
    physical: PhysicalInteractionResult
    language: LanguageInteractionResult
    development: ConversationDevelopment
    composite: CompositeScore

    def to_dict(self) -> dict:
        return {
            'turns': [t.to_dict() for t in self.turns],
            'turns_by_speaker': {
                speaker: len(turns) for speaker, turns in self.turns_by_speaker.items()
            },
            'turn_taking': self.turn_taking.to_dict(),
            'dialogue_flow': self.dialogue_flow.to_dict(),
            'physical': self.physical.to_dict(),
            'language': self.language.to_dict(),
            'development': self.development.to_dict(),
            'composite': self.composite.to_dict(),
        }


def analyze_session(
    speech_fragments: Any,
    tracking_data: Any = None,
    speaker_profiles: Any = None,
    voice_summary: Optional[Mapping] = None,
    config: Dict = None
) -> SessionAnalysis:
    """
    Analyze one interaction session.

    Args:
        speech_fragments: Transcript fragments with word-level speaker tags
        tracking_data: Person-tracking stream (optional)
        speaker_profiles: External speaker profiles (optional)
        voice_summary: External voice analysis summary (optional)
        config: Configuration dict (see configs/thresholds.yaml)

    Returns:
        SessionAnalysis

    Raises:
        TimestampParseError: If a timestamp has an unrecognized shape
        ValueError: If configured weight tables do not sum to 1
    """
    if config is None:
        config = {}

    logger.info("=" * 60)
    logger.info("SESSION ANALYSIS")
    logger.info("=" * 60)

    # Stage 1: Conversation
    logger.info("[1/5] Conversation analysis")
    words = extract_speech_words(speech_fragments)
    turns = segment_turns(words)
    turns_by_speaker = group_turns_by_speaker(turns)
    turn_taking = compute_turn_taking_metrics(turns)
    dialogue_flow = analyze_dialogue_flow(turns, turn_taking, config)

    # Stage 2: Physical interaction
    logger.info("[2/5] Physical interaction analysis")
    tracks = extract_person_tracks(tracking_data)
    physical = analyze_physical_interaction(tracks, config)

    # Stage 3: Language
    logger.info("[3/5] Language analysis")
    language = analyze_language_interaction(entries_from_turns(turns), config)

    # Stage 4: Development
    logger.info("[4/5] Conversation development")
    profiles = parse_speaker_profiles(speaker_profiles)
    roles = assign_roles(turn_taking.turn_distribution, profiles)
    development = analyze_conversation_development(
        turns, dialogue_flow, lead=roles.lead, partner=roles.partner, config=config
    )

    # Stage 5: Scoring
    logger.info("[5/5] Composite scoring")

    sub_scores = compute_sub_scores(
        turns,
        turn_taking,
        dialogue_flow,
        language,
        physical,
        roles,
        profiles=profiles,
        voice_summary=voice_summary,
        config=config
    )

    data_quality = assess_data_quality(
        word_count=len(words),
        speaker_count=len(turns_by_speaker),
        turn_count=len(turns),
        total_frames=physical.total_frames,
        tracks_with_data=physical.tracks_with_data,
        matched_pairs=physical.matched_pairs
    )

    composite = compute_composite_score(sub_scores, data_quality, roles, config)

    logger.info(
        f"Session complete: {len(turns)} turns, overall {composite.overall:.3f} "
        f"(grade {composite.grade})"
    )

    return SessionAnalysis(
        turns=turns,
        turns_by_speaker=turns_by_speaker,
        turn_taking=turn_taking,
        dialogue_flow=dialogue_flow,
        physical=physical,
        language=language,
        development=development,
        composite=composite
    )

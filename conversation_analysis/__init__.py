"""
Conversation analysis modules.

This package turns word-level diarized speech into conversational structure:
- Speech ingestion (transcript fragments -> word records)
- Turn segmentation (word runs -> typed turns)
- Turn-taking metrics (distribution, gaps, overlaps, interruptions)
- Dialogue flow (balance, dominance, rhythm, supportive interactions)
- Conversation development (scaffolding, learning, dynamics, indicators)

Engineering approach:
- Pure functions over immutable records
- Explicit neutral defaults for empty input
- Threshold-based classification with configurable constants
"""

from .speech_words import (
    SpeechWord,
    extract_speech_words,
    speaker_id_for_tag
)

from .turn_segmentation import (
    TurnType,
    ConversationTurn,
    segment_turns,
    group_turns_by_speaker
)

from .turn_taking import (
    InterruptionStats,
    TurnTakingMetrics,
    compute_turn_taking_metrics,
    compute_response_latencies
)

from .dialogue_flow import (
    DialogueFlow,
    analyze_dialogue_flow,
    compute_participation_balance,
    compute_conversation_dominance
)

from .development import (
    ConversationDevelopment,
    analyze_conversation_development,
    classify_guidance_style,
    count_terms
)

__all__ = [
    # Ingestion
    'SpeechWord',
    'extract_speech_words',
    'speaker_id_for_tag',

    # Segmentation
    'TurnType',
    'ConversationTurn',
    'segment_turns',
    'group_turns_by_speaker',

    # Turn-taking
    'InterruptionStats',
    'TurnTakingMetrics',
    'compute_turn_taking_metrics',
    'compute_response_latencies',

    # Dialogue flow
    'DialogueFlow',
    'analyze_dialogue_flow',
    'compute_participation_balance',
    'compute_conversation_dominance',

    # Development
    'ConversationDevelopment',
    'analyze_conversation_development',
    'classify_guidance_style',
    'count_terms',
]

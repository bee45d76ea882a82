"""
Language content analysis modules.

This package computes what was said, as opposed to when:
- Per-speaker utterance and word statistics, vocabulary diversity
- Keyword frequency table
- Utterance types (questions, instructions, emotions, praise)
- Speaker-switch patterns and per-minute timeline

Classification is vocabulary membership over lowercase tokens, so the
results are deterministic for a given transcript.
"""

from .transcript import (
    TranscriptEntry,
    tokenize,
    entries_from_turns,
    group_entries_by_speaker
)

from .statistics import (
    SpeakerLanguageStats,
    KeywordSummary,
    UtteranceTypeCounts,
    compute_speaker_stats,
    extract_keywords,
    classify_utterance,
    count_utterance_types
)

from .patterns import (
    ConversationPatterns,
    TimelineBin,
    analyze_conversation_patterns,
    build_utterance_timeline
)

from .analyzer import (
    LanguageInteractionResult,
    analyze_language_interaction
)

__all__ = [
    'TranscriptEntry',
    'tokenize',
    'entries_from_turns',
    'group_entries_by_speaker',
    'SpeakerLanguageStats',
    'KeywordSummary',
    'UtteranceTypeCounts',
    'compute_speaker_stats',
    'extract_keywords',
    'classify_utterance',
    'count_utterance_types',
    'ConversationPatterns',
    'TimelineBin',
    'analyze_conversation_patterns',
    'build_utterance_timeline',
    'LanguageInteractionResult',
    'analyze_language_interaction',
]

"""
Language interaction analysis for a session.

Runs the language statistics over transcript entries:
1. Per-speaker statistics
2. Conversation patterns (switches, initiations)
3. Utterance types, overall and per speaker
4. Keyword table
5. Per-minute utterance timeline

Empty input yields an empty result with zero counts.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence, Tuple

from .patterns import (
    ConversationPatterns,
    TimelineBin,
    analyze_conversation_patterns,
    build_utterance_timeline
)
from .statistics import (
    KeywordSummary,
    SpeakerLanguageStats,
    UtteranceTypeCounts,
    compute_speaker_stats,
    count_utterance_types,
    extract_keywords
)
from .transcript import TranscriptEntry, group_entries_by_speaker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LanguageInteractionResult:
    """
    Language analysis of a session.

    Attributes:
        speaker_stats: Speaker -> SpeakerLanguageStats
        patterns: ConversationPatterns
        utterance_types: Session-wide UtteranceTypeCounts
        utterance_types_by_speaker: Speaker -> UtteranceTypeCounts
        keywords: KeywordSummary
        timeline: Per-minute TimelineBin tuple
    """
    speaker_stats: Dict[str, SpeakerLanguageStats] = field(default_factory=dict)
    patterns: ConversationPatterns = field(default_factory=ConversationPatterns)
    utterance_types: UtteranceTypeCounts = field(default_factory=UtteranceTypeCounts)
    utterance_types_by_speaker: Dict[str, UtteranceTypeCounts] = field(default_factory=dict)
    keywords: KeywordSummary = field(default_factory=KeywordSummary)
    timeline: Tuple[TimelineBin, ...] = ()

    @property
    def total_words(self) -> int:
        return sum(s.total_words for s in self.speaker_stats.values())

    def to_dict(self) -> dict:
        return {
            'speaker_stats': {s: stats.to_dict() for s, stats in self.speaker_stats.items()},
            'patterns': self.patterns.to_dict(),
            'utterance_types': self.utterance_types.to_dict(),
            'utterance_types_by_speaker': {
                s: counts.to_dict() for s, counts in self.utterance_types_by_speaker.items()
            },
            'keywords': self.keywords.to_dict(),
            'timeline': [b.to_dict() for b in self.timeline],
        }


def analyze_language_interaction(
    entries: Sequence[TranscriptEntry],
    config: Dict = None
) -> LanguageInteractionResult:
    """
    Analyze language content of a session.

    Args:
        entries: Transcript entries (see entries_from_turns)
        config: Configuration dict

    Returns:
        LanguageInteractionResult
    """
    if config is None:
        config = {}

    if not entries:
        logger.warning("No transcript entries available for language analysis")
        return LanguageInteractionResult()

    logger.info(f"Analyzing language interaction over {len(entries)} utterances")

    grouped = group_entries_by_speaker(entries)

    result = LanguageInteractionResult(
        speaker_stats=compute_speaker_stats(grouped, config),
        patterns=analyze_conversation_patterns(entries, config),
        utterance_types=count_utterance_types(entries),
        utterance_types_by_speaker={
            speaker: count_utterance_types(speaker_entries)
            for speaker, speaker_entries in grouped.items()
        },
        keywords=extract_keywords(entries, config),
        timeline=build_utterance_timeline(
            entries,
            config.get('language', {}).get('timeline_bin_sec', 60.0),
            config.get('language', {}).get('max_timeline_bins', 1440)
        )
    )

    types = result.utterance_types
    logger.info(
        f"Utterance types: questions={types.questions}, instructions={types.instructions}, "
        f"emotions={types.emotional_expressions}, praise={types.praise_encouragement}"
    )

    return result

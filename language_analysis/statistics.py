"""
Language content statistics.

Per-speaker statistics:
- utterance_count, total_words, avg_word_count
- avg_interval: mean gap between a speaker's consecutive utterances
  (only intervals in (0, 300) seconds are counted)
- dominance_score: speaker words / all words
- unique_words, vocabulary_diversity (type/token ratio)

Keyword table:
- lowercase tokens without stop-words, single characters and pure digits
- words occurring at least twice, top 10 by frequency (ties by word)

Utterance types (an utterance can count in several types):
- questions: '?' or an interrogative word
- instructions: directive words and phrases
- emotional_expressions: feeling words
- praise_encouragement: praise words and phrases

All classification is plain vocabulary membership, so identical input
always yields identical counts.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Mapping, Sequence, Tuple

import numpy as np

from .transcript import TranscriptEntry, tokenize

logger = logging.getLogger(__name__)

MAX_INTERVAL_SEC = 300.0
MIN_KEYWORD_FREQUENCY = 2
TOP_KEYWORDS = 10

STOP_WORDS = frozenset({
    'a', 'an', 'the', 'and', 'or', 'but', 'so', 'to', 'of', 'in', 'on', 'at', 'for',
    'with', 'by', 'from', 'up', 'is', 'am', 'are', 'was', 'were', 'be', 'been',
    'it', "it's", 'its', 'this', 'that', 'these', 'those', 'i', 'me', 'my', 'you',
    'your', 'he', 'she', 'we', 'they', 'them', 'us', 'do', 'does', 'did', 'have',
    'has', 'had', 'will', 'would', 'can', 'could', 'just', 'um', 'uh', 'oh', 'ah',
    'hmm', 'mm', 'there', 'here', 'then', 'than', 'if', 'not', 'no', 'yes',
})

INTERROGATIVE_WORDS = frozenset({'what', 'why', 'how', 'where', 'when', 'who', 'which', 'whose'})
INSTRUCTION_WORDS = frozenset({
    "let's", 'try', 'put', 'give', 'look', 'come', 'please', 'should', 'must',
    'need', 'hold', 'wait', 'stop', 'show', 'together',
})
INSTRUCTION_PHRASES = frozenset({'let us', 'you can', 'go ahead', 'do it'})
EMOTION_WORDS = frozenset({
    'happy', 'sad', 'love', 'like', 'scared', 'fun', 'angry', 'excited', 'hate',
    'afraid', 'yay', 'wow', 'funny', 'mad', 'upset', 'glad', 'cry',
})
PRAISE_WORDS = frozenset({
    'great', 'awesome', 'amazing', 'excellent', 'nice', 'perfect', 'wonderful',
    'brilliant', 'fantastic', 'good', 'clever', 'bravo',
})
PRAISE_PHRASES = frozenset({'good job', 'well done', 'you did it', 'way to go'})


@dataclass(frozen=True)
class SpeakerLanguageStats:
    """
    Language statistics for one speaker.

    Attributes:
        utterance_count: Number of utterances
        avg_word_count: Mean words per utterance
        avg_interval: Mean gap between consecutive utterances (seconds)
        total_words: Total word tokens
        dominance_score: Share of all words in the session (0-1)
        unique_words: Distinct word tokens
        vocabulary_diversity: unique_words / total_words
        content_words: Distinct non-stop-word tokens
    """
    utterance_count: int = 0
    avg_word_count: float = 0.0
    avg_interval: float = 0.0
    total_words: int = 0
    dominance_score: float = 0.0
    unique_words: int = 0
    vocabulary_diversity: float = 0.0
    content_words: FrozenSet[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict:
        return {
            'utterance_count': self.utterance_count,
            'avg_word_count': self.avg_word_count,
            'avg_interval': self.avg_interval,
            'total_words': self.total_words,
            'dominance_score': self.dominance_score,
            'unique_words': self.unique_words,
            'vocabulary_diversity': self.vocabulary_diversity,
        }


@dataclass(frozen=True)
class KeywordSummary:
    top_keywords: Tuple[Tuple[str, int], ...] = ()
    total_unique_words: int = 0
    total_words: int = 0

    def to_dict(self) -> dict:
        return {
            'top_keywords': [[word, count] for word, count in self.top_keywords],
            'total_unique_words': self.total_unique_words,
            'total_words': self.total_words,
        }


@dataclass(frozen=True)
class UtteranceTypeCounts:
    questions: int = 0
    instructions: int = 0
    emotional_expressions: int = 0
    praise_encouragement: int = 0
    total: int = 0

    def rate(self, name: str) -> float:
        """Share of utterances of one type (0 when there are none)."""
        return getattr(self, name) / self.total if self.total else 0.0

    def to_dict(self) -> dict:
        return {
            'questions': self.questions,
            'instructions': self.instructions,
            'emotional_expressions': self.emotional_expressions,
            'praise_encouragement': self.praise_encouragement,
            'total': self.total,
        }


def compute_speaker_stats(
    grouped: Mapping[str, Sequence[TranscriptEntry]],
    config: Dict = None
) -> Dict[str, SpeakerLanguageStats]:
    """
    Compute per-speaker language statistics.

    Args:
        grouped: Speaker -> time-ordered entries (see group_entries_by_speaker)
        config: Configuration dict (language.max_interval_sec)

    Returns:
        Dictionary speaker -> SpeakerLanguageStats
    """
    if config is None:
        config = {}
    max_interval = config.get('language', {}).get('max_interval_sec', MAX_INTERVAL_SEC)

    tokens_by_speaker = {
        speaker: [tokenize(e.text) for e in entries]
        for speaker, entries in grouped.items()
    }
    session_words = sum(len(t) for utterances in tokens_by_speaker.values() for t in utterances)

    stats = {}
    for speaker, entries in grouped.items():
        utterance_tokens = tokens_by_speaker[speaker]
        words = [token for tokens in utterance_tokens for token in tokens]

        times = np.array([e.time for e in entries], dtype=float)
        intervals = np.diff(times) if len(times) > 1 else np.array([])
        intervals = intervals[(intervals > 0) & (intervals < max_interval)]

        unique = set(words)

        stats[speaker] = SpeakerLanguageStats(
            utterance_count=len(entries),
            avg_word_count=len(words) / len(entries) if entries else 0.0,
            avg_interval=float(np.mean(intervals)) if len(intervals) else 0.0,
            total_words=len(words),
            dominance_score=len(words) / session_words if session_words else 0.0,
            unique_words=len(unique),
            vocabulary_diversity=len(unique) / len(words) if words else 0.0,
            content_words=frozenset(w for w in unique if _is_content_word(w))
        )

        logger.debug(
            f"{speaker}: {len(entries)} utterances, {len(words)} words, "
            f"diversity {stats[speaker].vocabulary_diversity:.2f}"
        )

    return stats


def extract_keywords(entries: Iterable[TranscriptEntry], config: Dict = None) -> KeywordSummary:
    """
    Build the session keyword table.

    Args:
        entries: Transcript entries
        config: Configuration dict (language.keywords.min_frequency, top_n)

    Returns:
        KeywordSummary
    """
    if config is None:
        config = {}
    keyword_config = config.get('language', {}).get('keywords', {})
    min_frequency = keyword_config.get('min_frequency', MIN_KEYWORD_FREQUENCY)
    top_n = keyword_config.get('top_n', TOP_KEYWORDS)

    filtered = [
        word
        for entry in entries
        for word in tokenize(entry.text)
        if _is_content_word(word)
    ]
    frequency = Counter(filtered)

    significant = sorted(
        ((word, count) for word, count in frequency.items() if count >= min_frequency),
        key=lambda item: (-item[1], item[0])
    )[:top_n]

    logger.debug(f"Keywords: {len(significant)} significant of {len(frequency)} unique words")

    return KeywordSummary(
        top_keywords=tuple(significant),
        total_unique_words=len(frequency),
        total_words=len(filtered)
    )


def classify_utterance(text: str) -> FrozenSet[str]:
    """
    Utterance types present in one utterance.

    Returns:
        Frozen set of type names (may be empty)
    """
    tokens = tokenize(text)
    token_set = frozenset(tokens)
    joined = f" {' '.join(tokens)} "

    types = set()
    if '?' in (text or '') or token_set & INTERROGATIVE_WORDS:
        types.add('questions')
    if token_set & INSTRUCTION_WORDS or _has_phrase(joined, INSTRUCTION_PHRASES):
        types.add('instructions')
    if token_set & EMOTION_WORDS:
        types.add('emotional_expressions')
    if token_set & PRAISE_WORDS or _has_phrase(joined, PRAISE_PHRASES):
        types.add('praise_encouragement')

    return frozenset(types)


def count_utterance_types(entries: Iterable[TranscriptEntry]) -> UtteranceTypeCounts:
    """Count utterance types over a set of entries."""
    counts = Counter()
    total = 0
    for entry in entries:
        total += 1
        counts.update(classify_utterance(entry.text))

    return UtteranceTypeCounts(
        questions=counts['questions'],
        instructions=counts['instructions'],
        emotional_expressions=counts['emotional_expressions'],
        praise_encouragement=counts['praise_encouragement'],
        total=total
    )


def _is_content_word(word: str) -> bool:
    return len(word) > 1 and word not in STOP_WORDS and not word.isdigit()


def _has_phrase(joined: str, phrases: FrozenSet[str]) -> bool:
    return any(f" {phrase} " in joined for phrase in phrases)

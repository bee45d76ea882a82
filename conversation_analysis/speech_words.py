"""
Speech stream ingestion.

Flattens the transcription provider's output into word records:
    fragments -> alternatives[0] -> words -> SpeechWord

Only the top alternative of each fragment is used. Fields may arrive in the
provider's camelCase JSON form or in snake_case (client-library objects
converted to dicts). Omitted fields fall back to protobuf defaults.
"""

import logging
from collections.abc import Iterable as IterableABC, Mapping
from dataclasses import dataclass, asdict
from typing import Any, Iterable, List, Tuple

from utils.time_utils import parse_optional_time

logger = logging.getLogger(__name__)

DEFAULT_SPEAKER_TAG = 1


@dataclass(frozen=True)
class SpeechWord:
    """
    Single recognized word with diarization tag.

    Attributes:
        text: Recognized word
        start_time: Word start in seconds
        end_time: Word end in seconds
        speaker_tag: Diarized voice index (small positive int)
        confidence: Recognition confidence (0-1)
    """
    text: str
    start_time: float
    end_time: float
    speaker_tag: int = DEFAULT_SPEAKER_TAG
    confidence: float = 0.0

    @property
    def speaker_id(self) -> str:
        return speaker_id_for_tag(self.speaker_tag)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def to_dict(self) -> dict:
        return asdict(self)


def speaker_id_for_tag(tag: int) -> str:
    """Stable string id for a diarization tag."""
    return f"speaker_{tag}"


def extract_speech_words(fragments: Iterable[Any]) -> Tuple[SpeechWord, ...]:
    """
    Extract word records from transcript fragments.

    Args:
        fragments: Ordered transcript fragments, each a mapping with an
            ``alternatives`` list whose first entry holds ``words``

    Returns:
        Tuple of SpeechWord in input order (not sorted)

    Raises:
        TimestampParseError: If a present timestamp has an unrecognized shape
    """
    if fragments is not None and not _is_sequence_like(fragments):
        logger.warning(f"Transcript fragments must be a list, got {type(fragments).__name__}")
        return ()

    fragments = list(fragments or [])
    if not fragments:
        logger.warning("No transcript fragments provided")
        return ()

    words: List[SpeechWord] = []
    skipped = 0

    for index, fragment in enumerate(fragments):
        if not isinstance(fragment, Mapping):
            logger.warning(f"Skipping transcript fragment {index}: not a mapping")
            skipped += 1
            continue

        alternatives = fragment.get('alternatives') or []
        if not isinstance(alternatives, (list, tuple)):
            logger.warning(f"Skipping transcript fragment {index}: alternatives is not a list")
            skipped += 1
            continue
        if not alternatives or not isinstance(alternatives[0], Mapping):
            logger.debug(f"Transcript fragment {index} has no usable alternative")
            continue

        raw_words = alternatives[0].get('words') or []
        if not isinstance(raw_words, (list, tuple)):
            logger.warning(f"Skipping transcript fragment {index}: words is not a list")
            skipped += 1
            continue

        for raw_word in raw_words:
            if not isinstance(raw_word, Mapping):
                skipped += 1
                continue
            words.append(_parse_word(raw_word))

    if skipped:
        logger.warning(f"Skipped {skipped} malformed transcript items")

    logger.info(f"Extracted {len(words)} words from {len(fragments)} transcript fragments")

    return tuple(words)


def _parse_word(raw: Mapping) -> SpeechWord:
    start_time = parse_optional_time(_field(raw, 'startTime', 'start_time'))
    end_time = parse_optional_time(_field(raw, 'endTime', 'end_time'))

    tag = _field(raw, 'speakerTag', 'speaker_tag')
    try:
        speaker_tag = int(tag) if tag else DEFAULT_SPEAKER_TAG
    except (TypeError, ValueError):
        logger.debug(f"Invalid speaker tag {tag!r}, using default")
        speaker_tag = DEFAULT_SPEAKER_TAG

    confidence = raw.get('confidence')
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = 0.0

    return SpeechWord(
        text=str(raw.get('word') or ''),
        start_time=start_time,
        end_time=max(start_time, end_time),
        speaker_tag=speaker_tag,
        confidence=float(confidence)
    )


def _field(raw: Mapping, camel: str, snake: str) -> Any:
    value = raw.get(camel)
    if value is None:
        value = raw.get(snake)
    return value


def _is_sequence_like(value: Any) -> bool:
    """Iterable of fragments; strings and mappings are not."""
    return isinstance(value, IterableABC) and not isinstance(value, (str, bytes, Mapping))

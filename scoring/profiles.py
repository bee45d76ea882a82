"""
Speaker profiles and conversational roles.

External voice analysis may supply a profile per diarized speaker:

    {"speakerId": 1,
     "demographic": {"age": "adult"},
     "emotionalProfile": {"engagement": 0.8, "stability": 0.7},
     "supportiveness": 0.6}

Profile values are clamped to [0, 1]; missing values stay None so scoring
can fall back to observed behavior.

Roles:
- lead: the speaker whose profile says 'adult'; otherwise the speaker with
  the most turns (ties broken by lowest id)
- partner: the most active remaining speaker
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import numpy as np

from conversation_analysis.speech_words import speaker_id_for_tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeakerProfile:
    """
    Externally supplied speaker profile.

    Attributes:
        speaker_id: Speaker identifier ("speaker_<tag>")
        age_group: 'adult', 'child', 'teenager' or None
        engagement: Emotional engagement (0-1) or None
        stability: Emotional stability (0-1) or None
        supportiveness: Supportiveness (0-1) or None
    """
    speaker_id: str
    age_group: Optional[str] = None
    engagement: Optional[float] = None
    stability: Optional[float] = None
    supportiveness: Optional[float] = None

    @property
    def is_adult(self) -> bool:
        return self.age_group == 'adult'


@dataclass(frozen=True)
class ConversationRoles:
    lead: Optional[str] = None
    partner: Optional[str] = None

    def to_dict(self) -> dict:
        return {'lead': self.lead, 'partner': self.partner}


def parse_speaker_profiles(raw_profiles: Any) -> Dict[str, SpeakerProfile]:
    """
    Parse external speaker profiles.

    Args:
        raw_profiles: List of profile mappings (or a mapping with 'speakers')

    Returns:
        Dictionary speaker_id -> SpeakerProfile (malformed entries skipped)
    """
    if isinstance(raw_profiles, Mapping):
        raw_profiles = raw_profiles.get('speakers', [])

    profiles: Dict[str, SpeakerProfile] = {}

    for raw in raw_profiles or []:
        if not isinstance(raw, Mapping):
            logger.warning(f"Skipping malformed speaker profile: {type(raw).__name__}")
            continue

        speaker_id = _profile_speaker_id(raw)
        if speaker_id is None:
            logger.warning("Skipping speaker profile without speakerId")
            continue

        demographic = raw.get('demographic') or {}
        emotional = raw.get('emotionalProfile') or raw.get('emotional_profile') or {}
        age = demographic.get('age') if isinstance(demographic, Mapping) else None
        if not isinstance(emotional, Mapping):
            emotional = {}

        profiles[speaker_id] = SpeakerProfile(
            speaker_id=speaker_id,
            age_group=str(age).lower() if age is not None else None,
            engagement=_unit_or_none(emotional.get('engagement')),
            stability=_unit_or_none(emotional.get('stability')),
            supportiveness=_unit_or_none(raw.get('supportiveness'))
        )

    if profiles:
        logger.info(f"Loaded {len(profiles)} speaker profiles")

    return profiles


def assign_roles(
    turn_distribution: Dict[str, int],
    profiles: Dict[str, SpeakerProfile] = None
) -> ConversationRoles:
    """
    Assign lead and partner roles.

    Args:
        turn_distribution: Turn count per speaker
        profiles: Speaker profiles by speaker id

    Returns:
        ConversationRoles (None for roles that cannot be filled)
    """
    profiles = profiles or {}
    candidates = list(dict.fromkeys(list(turn_distribution) + list(profiles)))

    if not candidates:
        return ConversationRoles()

    def by_activity(speakers: Iterable[str]) -> Optional[str]:
        ranked = sorted(speakers, key=lambda s: (-turn_distribution.get(s, 0), s))
        return ranked[0] if ranked else None

    adults = [s for s in candidates if s in profiles and profiles[s].is_adult]
    lead = by_activity(adults) if adults else by_activity(candidates)
    partner = by_activity(s for s in candidates if s != lead)

    logger.debug(f"Roles: lead={lead}, partner={partner}")

    return ConversationRoles(lead=lead, partner=partner)


def _profile_speaker_id(raw: Mapping) -> Optional[str]:
    value = raw.get('speakerId', raw.get('speaker_id'))
    if value is None:
        return None
    if isinstance(value, str) and value.startswith('speaker_'):
        return value
    try:
        return speaker_id_for_tag(int(value))
    except (TypeError, ValueError):
        return str(value)


def _unit_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not np.isfinite(value):
        return None
    return float(np.clip(value, 0.0, 1.0))

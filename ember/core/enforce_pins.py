"""Pin Rules — visibility parsing and emotion checks.

Invariants:
    - parse_visibility accepts exactly the three Visibility values (case-sensitive)
    - Unknown values are a caller error (InvalidVisibilityError), never coerced
    - normalize_emotion strips surrounding whitespace; the result is 1 to
      MAX_EMOTION_LENGTH characters or InvalidEmotionError is raised
"""

from ember.core.domain_types import Visibility
from ember.core.errors import InvalidEmotionError, InvalidVisibilityError

MAX_EMOTION_LENGTH = 16


def parse_visibility(value: str | Visibility) -> Visibility:
    """Map a caller-supplied value to Visibility or raise InvalidVisibilityError."""
    if isinstance(value, Visibility):
        return value
    try:
        return Visibility(value)
    except ValueError:
        raise InvalidVisibilityError(value) from None


def normalize_emotion(emotion: str) -> str:
    if not isinstance(emotion, str):
        raise InvalidEmotionError(emotion)
    emotion = emotion.strip()
    if not emotion or len(emotion) > MAX_EMOTION_LENGTH:
        raise InvalidEmotionError(emotion)
    return emotion

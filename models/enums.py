"""Enumerations for book generation status tracking and prompt parameters."""

from enum import Enum
from typing import Optional

from config.exceptions import ValidationError


class BookStatus(str, Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"


class NodeStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"


class HeatLevel(str, Enum):
    """Content-intensity levels, ordered from least to most explicit."""

    CLEAN = "clean"
    SWEET = "sweet"
    SENSUAL = "sensual"
    STEAMY = "steamy"
    SPICY = "spicy"
    EXPLICIT = "explicit"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def rank(self) -> int:
        return list(HeatLevel).index(self)

    @property
    def guideline(self) -> str:
        return _HEAT_GUIDELINES[self]

    @classmethod
    def parse(cls, value) -> "HeatLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(level.value for level in cls)
            raise ValidationError(
                f"Unknown heat level: {value!r}", {"allowed": allowed}
            ) from None


_HEAT_GUIDELINES = {
    HeatLevel.CLEAN: (
        "Clean/Wholesome romance with no explicit sexual content, focusing on emotional "
        "connection, meaningful glances, hugs, and light kissing."
    ),
    HeatLevel.SWEET: (
        "Sweet romance with closed-door intimate scenes that are implied rather than "
        "explicit, focusing on emotional development."
    ),
    HeatLevel.SENSUAL: (
        "Sensual romance with on-page love scenes using euphemistic language, emphasizing "
        "emotional aspects over explicit details."
    ),
    HeatLevel.STEAMY: (
        "Steamy romance with explicit sexual content and detailed intimate scenes "
        "throughout the story."
    ),
    HeatLevel.SPICY: (
        "Spicy/Erotic romance with heavy emphasis on sexual activity, detailed "
        "descriptions, and multiple intimate scenes."
    ),
    HeatLevel.EXPLICIT: (
        "Explicit romance with highly detailed and graphic sexual content, exploring "
        "characters' desires in depth."
    ),
}


class Perspective(str, Enum):
    FIRST = "first"
    THIRD_LIMITED = "third-limited"
    THIRD_OMNISCIENT = "third-omniscient"
    SECOND = "second"

    @property
    def instruction(self) -> str:
        return _PERSPECTIVE_INSTRUCTIONS[self]

    @classmethod
    def parse(cls, value) -> Optional["Perspective"]:
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValidationError(
                f"Unknown perspective: {value!r}", {"allowed": allowed}
            ) from None


_PERSPECTIVE_INSTRUCTIONS = {
    Perspective.FIRST: 'Write in first person narrative (using "I" perspective).',
    Perspective.THIRD_LIMITED: (
        'Write in third person limited narrative (using "he/she" perspective), '
        "following one character's viewpoint."
    ),
    Perspective.THIRD_OMNISCIENT: (
        'Write in third person omniscient narrative (using "he/she" perspective), '
        "with access to multiple characters' thoughts."
    ),
    Perspective.SECOND: 'Write in second person narrative (using "you" perspective).',
}


class ProviderName(str, Enum):
    LOCAL = "local"
    BEDROCK = "bedrock"
    GEMINI = "gemini"


class LocalTool(str, Enum):
    CLAUDE_CODE = "claude_code"
    CODEX = "codex"


class OperationKind(str, Enum):
    BOOK_OUTLINE = "book_outline"
    CHAPTER_OUTLINE = "chapter_outline"
    CONTENT = "content"
    CONTENT_WITH_HEAT = "content_with_heat"
    COVER_IMAGE = "cover_image"
    CHAPTER_IMAGE = "chapter_image"
    RESEARCH = "research"

    @property
    def is_image(self) -> bool:
        return self in (OperationKind.COVER_IMAGE, OperationKind.CHAPTER_IMAGE)

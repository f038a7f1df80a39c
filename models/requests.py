"""Plain-data request values passed to provider operations."""

from dataclasses import dataclass
from typing import Optional

from config.exceptions import ValidationError
from models.enums import HeatLevel, OperationKind, Perspective


def require_text(value: Optional[str], name: str) -> str:
    """Return ``value`` stripped, or raise if it is empty."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} must be non-empty")
    return str(value).strip()


@dataclass
class OutlineRequest:
    """Fields from the book prompt form used to generate a book outline."""
    prompt: str
    genre: str = ""
    sub_genre: str = ""
    target_audience: str = ""
    heat_level: Optional[HeatLevel] = None
    perspective: Optional[Perspective] = None
    author: str = ""
    tone: str = ""

    def __post_init__(self):
        self.prompt = require_text(self.prompt, "prompt")
        if self.heat_level is not None:
            self.heat_level = HeatLevel.parse(self.heat_level)
        self.perspective = Perspective.parse(self.perspective)

    @property
    def is_romance(self) -> bool:
        return self.genre.strip().lower() == "romance"


@dataclass
class ImageRequest:
    """Subject fields for cover or chapter illustration generation."""
    kind: OperationKind
    title: str
    description: str = ""
    genre: str = ""

    def __post_init__(self):
        if not OperationKind(self.kind).is_image:
            raise ValidationError(f"Not an image operation: {self.kind}")
        self.kind = OperationKind(self.kind)
        self.title = require_text(self.title, "title")

"""Book, chapter, and sub-chapter data models."""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Iterator, Optional

from models.enums import BookStatus, HeatLevel, NodeStatus, Perspective


def new_id() -> str:
    """Mint a fresh identity. Identities are never reused."""
    return str(uuid.uuid4())


@dataclass
class SubChapter:
    """A section of a chapter; the unit of content generation."""
    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    status: NodeStatus = NodeStatus.PENDING
    content: Optional[str] = None
    image_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "content": self.content,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SubChapter":
        return cls(
            id=data.get("id") or new_id(),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=NodeStatus(data.get("status", NodeStatus.PENDING.value)),
            content=data.get("content"),
            image_url=data.get("image_url"),
        )


@dataclass
class Chapter:
    """A chapter. ``sub_chapters is None`` means its outline has not been generated."""
    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    status: NodeStatus = NodeStatus.PENDING
    sub_chapters: Optional[list[SubChapter]] = None
    image_url: Optional[str] = None

    @property
    def has_outline(self) -> bool:
        return self.sub_chapters is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "sub_chapters": (
                [s.to_dict() for s in self.sub_chapters]
                if self.sub_chapters is not None else None
            ),
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Chapter":
        subs = data.get("sub_chapters")
        return cls(
            id=data.get("id") or new_id(),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=NodeStatus(data.get("status", NodeStatus.PENDING.value)),
            sub_chapters=[SubChapter.from_dict(s) for s in subs] if subs is not None else None,
            image_url=data.get("image_url"),
        )


@dataclass
class Book:
    """A book manuscript and its chapter/sub-chapter tree."""
    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    genre: str = ""
    author: Optional[str] = None
    sub_genre: Optional[str] = None
    tone: str = ""
    heat_level: Optional[HeatLevel] = None
    perspective: Optional[Perspective] = None
    target_audience: Optional[str] = None
    cover_url: Optional[str] = None
    status: BookStatus = BookStatus.DRAFT
    chapters: list[Chapter] = field(default_factory=list)

    def iter_sections(self) -> Iterator[tuple[Chapter, SubChapter]]:
        for chapter in self.chapters:
            for section in chapter.sub_chapters or []:
                yield chapter, section

    def count_sections(self, status: Optional[NodeStatus] = None) -> int:
        return sum(
            1 for _, s in self.iter_sections()
            if status is None or s.status == status
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.chapters) and all(
            c.status == NodeStatus.COMPLETED for c in self.chapters
        )

    def snapshot(self) -> "Book":
        """Return an independent copy suitable for persisting."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "genre": self.genre,
            "author": self.author,
            "sub_genre": self.sub_genre,
            "tone": self.tone,
            "heat_level": self.heat_level.value if self.heat_level else None,
            "perspective": self.perspective.value if self.perspective else None,
            "target_audience": self.target_audience,
            "cover_url": self.cover_url,
            "status": self.status.value,
            "chapters": [c.to_dict() for c in self.chapters],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Book":
        heat = data.get("heat_level")
        return cls(
            id=data.get("id") or new_id(),
            title=data.get("title", ""),
            description=data.get("description", ""),
            genre=data.get("genre", ""),
            author=data.get("author"),
            sub_genre=data.get("sub_genre"),
            tone=data.get("tone") or "",
            heat_level=HeatLevel.parse(heat) if heat else None,
            perspective=Perspective.parse(data.get("perspective")),
            target_audience=data.get("target_audience"),
            cover_url=data.get("cover_url"),
            status=BookStatus(data.get("status", BookStatus.DRAFT.value)),
            chapters=[Chapter.from_dict(c) for c in data.get("chapters", [])],
        )

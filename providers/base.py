"""Base provider: the uniform operation interface shared by every backend.

Subclasses supply two primitives, ``_complete`` (prompt in, raw text out)
and optionally ``_generate_image_bytes``. Prompt construction, input
validation, and response parsing live here so every backend yields the
same logical schema.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from config.exceptions import (
    ImageGenerationFailedError,
    MalformedResponseError,
    NoImagesGeneratedError,
    UnsupportedOperationError,
)
from config.settings import Settings
from models.book import Book, Chapter, SubChapter, new_id
from models.enums import BookStatus, HeatLevel, NodeStatus, OperationKind, Perspective, ProviderName
from models.requests import ImageRequest, OutlineRequest, require_text
from tools.cancellation import CancellationToken
from tools.json_parsing import extract_json, require_fields
from tools.prompt_templates import extract_section, fill_template, load_prompt, render_prompts

logger = logging.getLogger(__name__)

TEXT_OPERATIONS = frozenset({
    OperationKind.BOOK_OUTLINE,
    OperationKind.CHAPTER_OUTLINE,
    OperationKind.CONTENT,
    OperationKind.CONTENT_WITH_HEAT,
})
IMAGE_OPERATIONS = frozenset({OperationKind.COVER_IMAGE, OperationKind.CHAPTER_IMAGE})

Sleep = Callable[[float], Awaitable[None]]


class BaseProvider:
    """Base class for all generation backends."""

    name: ProviderName = ProviderName.LOCAL
    supported_operations: frozenset = frozenset()

    def __init__(self, settings: Optional[Settings] = None, sleep: Optional[Sleep] = None):
        self.settings = settings or Settings()
        self._sleep = sleep or asyncio.sleep

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name.value})"

    def supports(self, operation: OperationKind) -> bool:
        return OperationKind(operation) in self.supported_operations

    def _require_supported(self, operation: OperationKind) -> None:
        if not self.supports(operation):
            raise UnsupportedOperationError(
                f"{type(self).__name__} does not support {operation.value}",
                provider=self.name.value,
            )

    # ---- Backend primitives ----

    async def _complete(
        self, system_prompt: str, user_prompt: str, cancel: CancellationToken
    ) -> str:
        raise NotImplementedError

    async def _generate_image_bytes(self, prompt: str) -> bytes:
        raise UnsupportedOperationError(
            f"{type(self).__name__} cannot generate images", provider=self.name.value
        )

    def _single_image(self, images: Optional[list], error: Optional[str] = None) -> bytes:
        """Apply the image-result rules shared by every image backend."""
        if error:
            raise ImageGenerationFailedError(
                f"Image generation error: {error}", provider=self.name.value
            )
        if not images:
            raise NoImagesGeneratedError("No images generated", provider=self.name.value)
        return images[0]

    # ---- Operations ----

    async def generate_book_outline(
        self, request: OutlineRequest, cancel: Optional[CancellationToken] = None
    ) -> Book:
        """Generate a draft Book with a pending chapter list."""
        self._require_supported(OperationKind.BOOK_OUTLINE)
        cancel = CancellationToken.coerce(cancel)

        details = []
        if request.genre:
            details.append(f"Genre: {request.genre}")
        if request.sub_genre:
            details.append(f"Sub-Genre: {request.sub_genre}")
        if request.target_audience:
            details.append(f"Target Audience: {request.target_audience}")
        if request.tone:
            details.append(f"Tone: {request.tone}")
        if request.is_romance and request.heat_level:
            details.append(f"Heat Level: {request.heat_level.guideline}")
        if request.perspective:
            details.append(f"Narrative Perspective: {request.perspective.instruction}")

        guidance = ""
        if request.is_romance and request.sub_genre:
            guidance += f"\nSub-Genre: {request.sub_genre} romance"
        if request.is_romance and request.heat_level:
            guidance += " Ensure the content and pacing align with the specified heat level."
        if request.perspective:
            guidance += " Maintain consistent narrative perspective throughout all content."

        system_prompt, user_prompt = render_prompts(
            "book_outline", "Outline Instructions",
            prompt=request.prompt,
            details="\n".join(details),
            genre=request.genre or "General",
            sub_genre=request.sub_genre,
            target_audience=request.target_audience or "General readers",
            guidance=guidance,
        )

        logger.info("%s: generating book outline (genre=%s)", self.name.value, request.genre or "-")
        raw = await self._complete(system_prompt, user_prompt, cancel)
        return self._parse_book_outline(raw, request)

    def _parse_book_outline(self, raw: str, request: OutlineRequest) -> Book:
        data = extract_json(raw, provider=self.name.value)
        if isinstance(data, list):
            data = {"chapters": data}
        require_fields(data, ("chapters",), raw_response=raw, provider=self.name.value)
        if not isinstance(data["chapters"], list):
            raise MalformedResponseError(
                "'chapters' is not a list", raw_response=raw, provider=self.name.value
            )

        chapters = []
        for entry in data["chapters"]:
            entry = require_fields(entry, ("title",), raw_response=raw, provider=self.name.value)
            # Backend-supplied ids and statuses are ignored
            chapters.append(Chapter(
                id=new_id(),
                title=str(entry["title"]).strip(),
                description=str(entry.get("description") or "").strip(),
                status=NodeStatus.PENDING,
            ))

        return Book(
            id=new_id(),
            title=str(data.get("title") or "Untitled Book").strip(),
            description=str(data.get("description") or request.prompt).strip(),
            genre=request.genre or str(data.get("genre") or ""),
            author=request.author or "Unknown Author",
            sub_genre=request.sub_genre or data.get("subGenre") or None,
            tone=request.tone or str(data.get("tone") or ""),
            heat_level=request.heat_level,
            perspective=request.perspective,
            target_audience=request.target_audience or data.get("targetAudience") or None,
            status=BookStatus.DRAFT,
            chapters=chapters,
        )

    async def generate_chapter_outline(
        self, title: str, description: str, cancel: Optional[CancellationToken] = None
    ) -> list[SubChapter]:
        """Break a chapter into pending sections."""
        self._require_supported(OperationKind.CHAPTER_OUTLINE)
        title = require_text(title, "title")
        description = require_text(description, "description")
        cancel = CancellationToken.coerce(cancel)

        system_prompt, user_prompt = render_prompts(
            "chapter_outline", "Chapter Outline Instructions",
            title=title, description=description,
        )
        logger.info("%s: generating chapter outline for '%s'", self.name.value, title)
        raw = await self._complete(system_prompt, user_prompt, cancel)
        return self._parse_chapter_outline(raw)

    def _parse_chapter_outline(self, raw: str) -> list[SubChapter]:
        data = extract_json(raw, provider=self.name.value)
        if isinstance(data, list):
            data = {"sections": data}
        require_fields(data, ("sections",), raw_response=raw, provider=self.name.value)
        if not isinstance(data["sections"], list):
            raise MalformedResponseError(
                "'sections' is not a list", raw_response=raw, provider=self.name.value
            )

        sections = []
        for entry in data["sections"]:
            entry = require_fields(entry, ("title",), raw_response=raw, provider=self.name.value)
            sections.append(SubChapter(
                id=new_id(),
                title=str(entry["title"]).strip(),
                description=str(entry.get("description") or "").strip(),
                status=NodeStatus.PENDING,
            ))
        return sections

    async def generate_content(
        self, title: str, description: str, cancel: Optional[CancellationToken] = None
    ) -> str:
        self._require_supported(OperationKind.CONTENT)
        title = require_text(title, "title")
        description = require_text(description, "description")
        cancel = CancellationToken.coerce(cancel)

        system_prompt, user_prompt = render_prompts(
            "content", "Content Instructions", title=title, description=description,
        )
        logger.info("%s: generating content for '%s'", self.name.value, title)
        text = await self._complete(system_prompt, user_prompt, cancel)
        return text.strip()

    async def generate_content_with_heat(
        self,
        title: str,
        description: str,
        heat_level: HeatLevel | str,
        perspective: Optional[Perspective | str] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        self._require_supported(OperationKind.CONTENT_WITH_HEAT)
        title = require_text(title, "title")
        description = require_text(description, "description")
        level = HeatLevel.parse(heat_level)
        pov = Perspective.parse(perspective)
        cancel = CancellationToken.coerce(cancel)

        system_prompt, user_prompt = render_prompts(
            "content_heat", "Heat Content Instructions",
            title=title,
            description=description,
            heat_guideline=level.guideline,
            perspective=f"Narrative Perspective: {pov.instruction}" if pov else "",
        )
        logger.info("%s: generating %s content for '%s'", self.name.value, level.value, title)
        text = await self._complete(system_prompt, user_prompt, cancel)
        return text.strip()

    async def research(
        self, topic: str, context: str = "", cancel: Optional[CancellationToken] = None
    ) -> str:
        self._require_supported(OperationKind.RESEARCH)
        topic = require_text(topic, "topic")
        cancel = CancellationToken.coerce(cancel)

        system_prompt, user_prompt = render_prompts(
            "research", "Research Instructions", topic=topic, context=context or "",
        )
        logger.info("%s: researching '%s'", self.name.value, topic)
        text = await self._complete(system_prompt, user_prompt, cancel)
        return text.strip()

    async def generate_image(
        self, request: ImageRequest, cancel: Optional[CancellationToken] = None
    ) -> bytes:
        """Generate exactly one image. Never retried."""
        self._require_supported(request.kind)
        cancel = CancellationToken.coerce(cancel)

        section = "Cover Image" if request.kind == OperationKind.COVER_IMAGE else "Chapter Image"
        prompt = fill_template(
            extract_section(load_prompt("images"), section),
            title=request.title,
            description=request.description,
            genre=request.genre or "general",
        )
        cancel.raise_if_cancelled()
        logger.info("%s: generating %s for '%s'", self.name.value, request.kind.value, request.title)
        image = await self._generate_image_bytes(prompt)
        cancel.raise_if_cancelled()
        return image

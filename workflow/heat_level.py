"""Derive a new Book at a different heat level and regenerate all of its content."""

import logging
from typing import Optional

from config.credentials import AICredentials, RuntimeEnvironment
from config.exceptions import WorkflowError
from models.book import Book, Chapter, SubChapter, new_id
from models.enums import BookStatus, HeatLevel, NodeStatus
from workflow.graph import GenerationPipeline, MODE_HEAT, ProgressFn

logger = logging.getLogger(__name__)


def derive_book(original: Book, new_level: HeatLevel) -> Book:
    """Clone ``original`` as a fresh pending skeleton at ``new_level``.

    Every identity is newly minted and all generated content is dropped.
    The original is not modified.
    """
    chapters = []
    for chapter in original.chapters:
        sections = None
        if chapter.sub_chapters is not None:
            sections = [
                SubChapter(
                    id=new_id(),
                    title=section.title,
                    description=section.description,
                    status=NodeStatus.PENDING,
                )
                for section in chapter.sub_chapters
            ]
        chapters.append(Chapter(
            id=new_id(),
            title=chapter.title,
            description=chapter.description,
            status=NodeStatus.PENDING,
            sub_chapters=sections,
        ))

    return Book(
        id=new_id(),
        title=f"{original.title} - {new_level.label} Version",
        description=original.description,
        genre=original.genre,
        author=original.author,
        sub_genre=original.sub_genre,
        tone=original.tone,
        heat_level=new_level,
        perspective=original.perspective,
        target_audience=original.target_audience,
        status=BookStatus.GENERATING,
        chapters=chapters,
    )


class HeatLevelConverter:
    """Creates a heat-level variant of a finished book.

    Chapter outlines are reused rather than regenerated; only section
    content is rewritten, using the original book's narrative perspective.
    """

    def __init__(self, pipeline: Optional[GenerationPipeline] = None):
        self.pipeline = pipeline or GenerationPipeline()

    async def convert(
        self,
        original: Book,
        new_level: HeatLevel | str,
        credentials: AICredentials,
        on_progress: Optional[ProgressFn] = None,
        cancel=None,
        environment: Optional[RuntimeEnvironment] = None,
    ) -> Book:
        level = HeatLevel.parse(new_level)
        derived = derive_book(original, level)
        logger.info(
            "Converting '%s' to %s heat level (new book %s)",
            original.title, level.value, derived.id,
        )
        if on_progress is not None:
            on_progress(derived.snapshot())

        return await self.pipeline.run(
            derived,
            credentials,
            on_progress=on_progress,
            cancel=cancel,
            environment=environment,
            mode=MODE_HEAT,
            heat_level=level,
            perspective=original.perspective,
        )

    async def resume(
        self,
        derived: Book,
        credentials: AICredentials,
        on_progress: Optional[ProgressFn] = None,
        cancel=None,
        environment: Optional[RuntimeEnvironment] = None,
    ) -> Book:
        """Finish an interrupted conversion of ``derived`` at its own heat level."""
        if derived.heat_level is None:
            raise WorkflowError(
                "Book has no heat level to resume a conversion at", {"book_id": derived.id}
            )
        logger.info(
            "Resuming %s conversion of '%s': %d/%d sections done",
            derived.heat_level.value, derived.title,
            derived.count_sections(NodeStatus.COMPLETED), derived.count_sections(),
        )
        return await self.pipeline.run(
            derived,
            credentials,
            on_progress=on_progress,
            cancel=cancel,
            environment=environment,
            mode=MODE_HEAT,
            heat_level=derived.heat_level,
            perspective=derived.perspective,
        )

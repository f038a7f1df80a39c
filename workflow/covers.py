"""Cover and chapter illustration generation."""

import base64
import logging
from typing import Optional

from config.credentials import AICredentials, RuntimeEnvironment
from config.exceptions import ValidationError
from models.book import Book, Chapter
from models.enums import OperationKind
from models.requests import ImageRequest
from workflow.router import ServiceRouter

logger = logging.getLogger(__name__)


def to_data_url(image: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"


async def generate_cover(
    book: Book,
    router: ServiceRouter,
    credentials: AICredentials,
    environment: Optional[RuntimeEnvironment] = None,
    cancel=None,
) -> Book:
    """Generate a cover image and store it on ``book.cover_url``."""
    request = ImageRequest(
        kind=OperationKind.COVER_IMAGE,
        title=book.title,
        description=book.description,
        genre=book.genre,
    )
    routed = await router.generate_image(request, credentials, environment, cancel)
    book.cover_url = to_data_url(routed.result)
    logger.info("Cover generated for '%s' via %s", book.title, routed.used_provider)
    return book


async def generate_chapter_image(
    book: Book,
    chapter_id: str,
    router: ServiceRouter,
    credentials: AICredentials,
    environment: Optional[RuntimeEnvironment] = None,
    cancel=None,
) -> Chapter:
    """Generate an illustration for one chapter and store it on ``chapter.image_url``."""
    chapter = next((c for c in book.chapters if c.id == chapter_id), None)
    if chapter is None:
        raise ValidationError(f"Chapter not found: {chapter_id}", {"book_id": book.id})

    request = ImageRequest(
        kind=OperationKind.CHAPTER_IMAGE,
        title=chapter.title,
        description=chapter.description,
        genre=book.genre,
    )
    routed = await router.generate_image(request, credentials, environment, cancel)
    chapter.image_url = to_data_url(routed.result)
    logger.info("Illustration generated for chapter '%s' via %s", chapter.title, routed.used_provider)
    return chapter

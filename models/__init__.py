"""Models package: book records, enums, requests, and the snapshot store."""

from models.database import Database
from models.book import Book, Chapter, SubChapter, new_id
from models.requests import OutlineRequest, ImageRequest
from models.enums import (
    BookStatus,
    NodeStatus,
    HeatLevel,
    Perspective,
    ProviderName,
    LocalTool,
    OperationKind,
)

__all__ = [
    "Database",
    "Book",
    "Chapter",
    "SubChapter",
    "new_id",
    "OutlineRequest",
    "ImageRequest",
    "BookStatus",
    "NodeStatus",
    "HeatLevel",
    "Perspective",
    "ProviderName",
    "LocalTool",
    "OperationKind",
]

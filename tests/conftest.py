"""Shared pytest fixtures for the bookgen test suite."""

import pytest
from unittest.mock import MagicMock, AsyncMock

from tests.fakes import FakeProvider


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite database path."""
    return tmp_path / "test_books.db"


@pytest.fixture
def db(tmp_db_path):
    """Return an initialized Database instance backed by a temp file."""
    from models.database import Database
    return Database(tmp_db_path)


# ---------------------------------------------------------------------------
# Settings and credentials
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with tmp paths, no .env, and no pacing delays."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        sqlite_db_path=tmp_path / "books.db",
        log_dir=tmp_path / "logs",
        section_delay_seconds=0,
        research_section_delay_seconds=0,
        heat_section_delay_seconds=0,
    )


@pytest.fixture
def bedrock_credentials():
    from config.credentials import BedrockCredentials
    return BedrockCredentials(
        access_key_id="AKIATEST",
        secret_access_key="secret",
        region="us-east-1",
        model_id="anthropic.test-model",
    )


@pytest.fixture
def both_credentials(bedrock_credentials):
    """Primary and secondary providers configured."""
    from config.credentials import AICredentials
    return AICredentials(bedrock=bedrock_credentials, gemini_api_key="gemini-key")


@pytest.fixture
def secondary_only_credentials():
    from config.credentials import AICredentials
    return AICredentials(gemini_api_key="gemini-key")


@pytest.fixture
def cloud_environment():
    """Local CLIs disabled."""
    from config.credentials import RuntimeEnvironment
    return RuntimeEnvironment(supports_local_cli=True, local_mode_enabled=False)


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def make_router(settings):
    """Build a ServiceRouter whose adapters come from a label -> provider mapping."""
    from tools.local_cli import LocalCapabilities
    from workflow.router import ServiceRouter

    def _make(providers: dict, capabilities=None):
        probe = MagicMock()
        probe.probe = AsyncMock(return_value=capabilities or LocalCapabilities())

        def factory(candidate, credentials, settings_):
            return providers[candidate.label]

        return ServiceRouter(settings, probe=probe, adapter_factory=factory)

    return _make


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_book():
    """Two chapters: A with two pending sections, B with no outline yet."""
    from models.book import Book, Chapter, SubChapter
    return Book(
        title="The Lighthouse",
        description="A keeper finds a map.",
        genre="fantasy",
        author="Test Author",
        chapters=[
            Chapter(
                title="Chapter A",
                description="The map",
                sub_chapters=[
                    SubChapter(title="A1", description="Finding the map"),
                    SubChapter(title="A2", description="Reading the map"),
                ],
            ),
            Chapter(title="Chapter B", description="The voyage"),
        ],
    )


@pytest.fixture
def completed_book():
    """A fully generated two-chapter romance."""
    from models.book import Book, Chapter, SubChapter
    from models.enums import BookStatus, HeatLevel, NodeStatus, Perspective
    return Book(
        title="Bakers",
        description="Two rival bakers.",
        genre="romance",
        tone="playful",
        heat_level=HeatLevel.SWEET,
        perspective=Perspective.FIRST,
        status=BookStatus.COMPLETED,
        chapters=[
            Chapter(
                title=f"Chapter {c}",
                description=f"Part {c}",
                status=NodeStatus.COMPLETED,
                sub_chapters=[
                    SubChapter(
                        title=f"{c}.{s}",
                        description=f"Scene {c}.{s}",
                        status=NodeStatus.COMPLETED,
                        content=f"Original text {c}.{s}",
                    )
                    for s in (1, 2)
                ],
            )
            for c in (1, 2)
        ],
    )

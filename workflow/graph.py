"""LangGraph StateGraph: drives a Book's chapter/section tree to completion."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from langgraph.errors import GraphRecursionError
from langgraph.graph import StateGraph, END

from config.credentials import AICredentials, RuntimeEnvironment
from config.exceptions import GenerationCancelledError, WorkflowError
from config.settings import Settings, get_settings
from models.book import Book
from models.enums import BookStatus, HeatLevel, NodeStatus, Perspective
from tools.cancellation import CancellationToken
from workflow.conditions import route_after_select
from workflow.router import ServiceRouter
from workflow.state import PipelineState

logger = logging.getLogger(__name__)

ProgressFn = Callable[[Book], None]
Sleep = Callable[[float], Awaitable[None]]

MODE_STANDARD = "standard"
MODE_RESEARCH = "research"
MODE_HEAT = "heat"


def _with_research(description: str, research: str) -> str:
    return (
        f"{description}\n\n"
        f"Research findings:\n{research}\n\n"
        "Use the above research to create comprehensive, well-informed content."
    )


# ---------------------------------------------------------------------------
# Per-run resources: the book under construction and its collaborators
# ---------------------------------------------------------------------------

class _PipelineRun:
    """Everything one pipeline run needs. Node functions are its methods."""

    def __init__(
        self,
        book: Book,
        router: ServiceRouter,
        credentials: AICredentials,
        environment: RuntimeEnvironment,
        on_progress: Optional[ProgressFn],
        cancel: CancellationToken,
        settings: Settings,
        sleep: Sleep,
        mode: str = MODE_STANDARD,
        heat_level: Optional[HeatLevel] = None,
        perspective: Optional[Perspective] = None,
    ):
        self.book = book
        self.router = router
        self.credentials = credentials
        self.environment = environment
        self.on_progress = on_progress
        self.cancel = cancel
        self.settings = settings
        self.sleep = sleep
        self.mode = mode
        self.heat_level = heat_level
        self.perspective = perspective
        self.emit_count = 0

    @property
    def section_delay(self) -> float:
        if self.mode == MODE_RESEARCH:
            return self.settings.research_section_delay_seconds
        if self.mode == MODE_HEAT:
            return self.settings.heat_section_delay_seconds
        return self.settings.section_delay_seconds

    def emit(self) -> None:
        self.emit_count += 1
        if self.on_progress is not None:
            self.on_progress(self.book.snapshot())

    def recursion_limit(self) -> int:
        """Steps one graph pass can take.

        A pass ends right after a chapter outline is attached, so every
        section it can visit already exists when the pass starts.
        """
        steps = 2 * self.book.count_sections() + 4 * len(self.book.chapters)
        return max(50, steps + 10)

    # ---- Node functions ----

    async def select_next(self, state: PipelineState) -> dict:
        """Find the next unit of work. Completed sections are skipped without provider calls."""
        index = state.get("chapter_index", 0)
        if index >= len(self.book.chapters):
            return {"next_action": "finalize", "last_node": "select_next"}

        chapter = self.book.chapters[index]
        if chapter.sub_chapters is None and self.mode != MODE_HEAT:
            return {"next_action": "outline_chapter", "last_node": "select_next"}

        for position, section in enumerate(chapter.sub_chapters or []):
            if section.status != NodeStatus.COMPLETED:
                return {
                    "next_action": "generate_section",
                    "section_index": position,
                    "last_node": "select_next",
                }
        return {"next_action": "complete_chapter", "last_node": "select_next"}

    async def outline_chapter(self, state: PipelineState) -> dict:
        chapter = self.book.chapters[state.get("chapter_index", 0)]
        logger.info("Outlining chapter '%s'", chapter.title)

        routed = await self.router.generate_chapter_outline(
            chapter.title,
            chapter.description or chapter.title,
            self.credentials,
            self.environment,
            self.cancel,
        )
        chapter.sub_chapters = routed.result
        self.emit()
        logger.info(
            "Chapter '%s' outlined: %d sections (via %s)",
            chapter.title, len(chapter.sub_chapters), routed.used_provider,
        )
        return {
            "outlines_generated": state.get("outlines_generated", 0) + 1,
            "last_node": "outline_chapter",
        }

    async def _section_content(self, title: str, description: str) -> str:
        if self.mode == MODE_HEAT:
            routed = await self.router.generate_content_with_heat(
                title, description, self.heat_level, self.perspective,
                self.credentials, self.environment, self.cancel,
            )
            return routed.result

        if self.mode == MODE_RESEARCH:
            research = (await self.router.research(
                title, description, self.credentials, self.environment, self.cancel,
            )).result
            self.cancel.raise_if_cancelled()
            description = _with_research(description, research)

        routed = await self.router.generate_content(
            title, description, self.credentials, self.environment, self.cancel,
        )
        return routed.result

    async def generate_section(self, state: PipelineState) -> dict:
        chapter = self.book.chapters[state.get("chapter_index", 0)]
        section = chapter.sub_chapters[state.get("section_index", 0)]

        self.cancel.raise_if_cancelled()
        section.status = NodeStatus.GENERATING
        self.emit()

        logger.info("Generating section '%s' (chapter '%s')", section.title, chapter.title)
        content = await self._section_content(section.title, section.description or section.title)

        section.content = content
        section.status = NodeStatus.COMPLETED
        self.emit()

        if self.section_delay > 0:
            await self.sleep(self.section_delay)
        return {
            "sections_generated": state.get("sections_generated", 0) + 1,
            "last_node": "generate_section",
        }

    async def complete_chapter(self, state: PipelineState) -> dict:
        index = state.get("chapter_index", 0)
        chapter = self.book.chapters[index]
        completed = state.get("chapters_completed", 0)
        if chapter.status != NodeStatus.COMPLETED:
            chapter.status = NodeStatus.COMPLETED
            self.emit()
            completed += 1
            logger.info("Chapter %d/%d complete: %s", index + 1, len(self.book.chapters), chapter.title)
        return {
            "chapter_index": index + 1,
            "section_index": 0,
            "chapters_completed": completed,
            "last_node": "complete_chapter",
        }

    async def finalize(self, state: PipelineState) -> dict:
        if self.book.is_complete and self.book.status != BookStatus.COMPLETED:
            self.book.status = BookStatus.COMPLETED
            self.emit()
        return {"last_node": "finalize"}


def build_graph(run: _PipelineRun):
    """Build and return the compiled pipeline graph for one run."""
    graph = StateGraph(PipelineState)

    graph.add_node("select_next", run.select_next)
    graph.add_node("outline_chapter", run.outline_chapter)
    graph.add_node("generate_section", run.generate_section)
    graph.add_node("complete_chapter", run.complete_chapter)
    graph.add_node("finalize", run.finalize)

    graph.set_entry_point("select_next")

    graph.add_conditional_edges(
        "select_next",
        route_after_select,
        {
            "outline_chapter": "outline_chapter",
            "generate_section": "generate_section",
            "complete_chapter": "complete_chapter",
            "finalize": "finalize",
        },
    )

    # A new outline ends the pass; the caller starts another with a budget
    # sized for the sections just attached.
    graph.add_edge("outline_chapter", END)
    graph.add_edge("generate_section", "select_next")
    graph.add_edge("complete_chapter", "select_next")
    graph.add_edge("finalize", END)

    return graph.compile()


class GenerationPipeline:
    """Sequentially generates outlines and content for every pending node of a Book.

    The Book is mutated in place and a deep-copied snapshot is passed to
    ``on_progress`` after every transition. Any failure leaves the in-flight
    section ``generating``; calling again resumes from there.
    """

    def __init__(
        self,
        router: Optional[ServiceRouter] = None,
        settings: Optional[Settings] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.settings = settings or get_settings()
        self.router = router or ServiceRouter(self.settings)
        self.sleep = sleep or asyncio.sleep

    async def generate_all(
        self,
        book: Book,
        credentials: AICredentials,
        on_progress: Optional[ProgressFn] = None,
        cancel=None,
        environment: Optional[RuntimeEnvironment] = None,
    ) -> Book:
        return await self.run(book, credentials, on_progress, cancel, environment, mode=MODE_STANDARD)

    async def generate_all_with_research(
        self,
        book: Book,
        credentials: AICredentials,
        on_progress: Optional[ProgressFn] = None,
        cancel=None,
        environment: Optional[RuntimeEnvironment] = None,
    ) -> Book:
        """Like ``generate_all`` but researches every section before writing it."""
        return await self.run(book, credentials, on_progress, cancel, environment, mode=MODE_RESEARCH)

    async def run(
        self,
        book: Book,
        credentials: AICredentials,
        on_progress: Optional[ProgressFn] = None,
        cancel=None,
        environment: Optional[RuntimeEnvironment] = None,
        mode: str = MODE_STANDARD,
        heat_level: Optional[HeatLevel] = None,
        perspective: Optional[Perspective] = None,
    ) -> Book:
        """Run the graph over ``book`` in the given mode and return it."""
        if not book.chapters:
            raise WorkflowError("Book has no chapters to generate", {"book_id": book.id})
        if mode == MODE_HEAT and heat_level is None:
            raise WorkflowError("Heat mode requires a heat level")

        run = _PipelineRun(
            book=book,
            router=self.router,
            credentials=credentials,
            environment=environment or RuntimeEnvironment.from_settings(self.settings),
            on_progress=on_progress,
            cancel=CancellationToken.coerce(cancel),
            settings=self.settings,
            sleep=self.sleep,
            mode=mode,
            heat_level=heat_level,
            perspective=perspective,
        )

        if book.status != BookStatus.GENERATING:
            book.status = BookStatus.GENERATING
            run.emit()

        app = build_graph(run)
        initial_state: PipelineState = {
            "mode": mode,
            "chapter_index": 0,
            "section_index": 0,
            "outlines_generated": 0,
            "sections_generated": 0,
            "chapters_completed": 0,
        }

        logger.info(
            "Starting pipeline: book=%s, mode=%s, chapters=%d",
            book.id, mode, len(book.chapters),
        )
        state = initial_state
        try:
            while True:
                state = await app.ainvoke(state, config={"recursion_limit": run.recursion_limit()})
                if state.get("last_node") != "outline_chapter":
                    break
        except GraphRecursionError as e:
            raise WorkflowError(
                "Pipeline exceeded its step budget", {"book_id": book.id, "error": str(e)}
            ) from e
        except GenerationCancelledError:
            logger.info(
                "Pipeline cancelled: %d/%d sections completed",
                book.count_sections(NodeStatus.COMPLETED), book.count_sections(),
            )
            raise

        logger.info(
            "Pipeline finished: %d outlines, %d sections generated, %d progress updates",
            state.get("outlines_generated", 0),
            state.get("sections_generated", 0),
            run.emit_count,
        )
        return book

"""CLI entry point: bookgen book generation tool.

Usage:
  bookgen outline -p "..."      Generate a book outline and save it
  bookgen write <id>            Generate all remaining content (resumable)
  bookgen convert <id> -l steamy
  bookgen convert <new-id> --resume
  bookgen backup                Copy the book database
  bookgen --help                List all commands
"""

import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Ensure UTF-8 output on Windows for Rich
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    book_summary_panel,
    book_tree,
    book_table,
)
from config.credentials import AICredentials, RuntimeEnvironment
from config.exceptions import BookGenError, GenerationCancelledError
from config.logging_config import setup_logging
from config.settings import Settings
from models.book import Book
from models.database import Database
from models.enums import HeatLevel, NodeStatus, Perspective
from models.requests import OutlineRequest
from workflow.callbacks import LoggingProgress, RichProgress, chain_progress
from workflow.covers import generate_chapter_image, generate_cover
from workflow.graph import GenerationPipeline
from workflow.heat_level import HeatLevelConverter
from workflow.router import ServiceRouter

console = get_console()
logger = logging.getLogger(__name__)


def _init_logging(verbose: bool, settings: Settings):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(
        level=level,
        log_dir=settings.log_dir,
        console_enabled=verbose,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )


def _environment(ctx) -> RuntimeEnvironment:
    settings = ctx.obj["settings"]
    env = RuntimeEnvironment.from_settings(settings)
    if ctx.obj["local"]:
        env = RuntimeEnvironment(supports_local_cli=env.supports_local_cli, local_mode_enabled=True)
    return env


def _load_book(db: Database, book_id: str) -> Book:
    book = db.find_book(book_id)
    if book is None:
        console.print(f"[error]No unique book matches ID '{book_id}'[/]")
        sys.exit(1)
    return book


def _fail(e: Exception, book: Book = None, resume: str = "bookgen write {id}"):
    """Report a failed run; the last snapshot is already saved.

    ``resume`` is the command that continues ``book``; ``{id}`` is its short ID.
    """
    if isinstance(e, (KeyboardInterrupt, GenerationCancelledError)):
        console.print("\n[warning]Interrupted[/]")
    else:
        console.print(f"\n[error]Run failed: {e}[/]")
        logger.exception("Command failed")
    if book is not None:
        hint = resume.format(id=book.id[:8])
        console.print(f"Progress saved. Resume with: [info]{hint}[/]")
    sys.exit(130 if isinstance(e, KeyboardInterrupt) else 1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--local", is_flag=True, help="Prefer locally installed Claude Code / Codex CLIs")
@click.pass_context
def cli(ctx, verbose, local):
    """bookgen: AI-assisted book generation.

    \b
    Typical flow:
      bookgen outline -p "A lighthouse keeper finds a map" -g fantasy
      bookgen write <book-id>
      bookgen show <book-id>
    """
    settings = Settings()
    _init_logging(verbose, settings)
    ctx.obj = {"settings": settings, "local": local}


# ---------------------------------------------------------------------------
# outline command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--prompt", "-p", required=True, help="Book idea / premise")
@click.option("--genre", "-g", default="", help="Genre (e.g. fantasy, romance, non-fiction)")
@click.option("--sub-genre", default="", help="Sub-genre, used for romance")
@click.option("--audience", default="", help="Target audience")
@click.option("--heat-level", type=click.Choice([h.value for h in HeatLevel]), default=None,
              help="Content intensity (romance only)")
@click.option("--perspective", type=click.Choice([p.value for p in Perspective]), default=None,
              help="Narrative perspective")
@click.option("--author", default="", help="Author name")
@click.option("--tone", default="", help="Tone of voice")
@click.pass_context
def outline(ctx, prompt, genre, sub_genre, audience, heat_level, perspective, author, tone):
    """Generate a book outline (chapters only) and save it.

    Example:
      bookgen outline -p "Two rival bakers in a small town" -g romance --heat-level sweet
    """
    settings = ctx.obj["settings"]
    console.print(app_header())
    console.print()

    fields = {"Prompt": prompt, "Genre": genre or "-"}
    if heat_level:
        fields["Heat level"] = heat_level
    if perspective:
        fields["Perspective"] = perspective
    console.print(command_panel("New outline", fields))
    console.print()

    try:
        request = OutlineRequest(
            prompt=prompt,
            genre=genre,
            sub_genre=sub_genre,
            target_audience=audience,
            heat_level=heat_level,
            perspective=perspective,
            author=author,
            tone=tone,
        )
        router = ServiceRouter(settings)
        with console.status("Generating outline..."):
            routed = asyncio.run(router.generate_book_outline(
                request, AICredentials.from_settings(settings), _environment(ctx),
            ))
    except KeyboardInterrupt as e:
        _fail(e)
    except BookGenError as e:
        _fail(e)

    book = routed.result
    Database(settings.sqlite_db_path).save_book(book)

    console.print(book_summary_panel(book))
    console.print(book_tree(book))
    console.print()
    console.print(f"[muted]Generated by {routed.used_provider}[/]")
    console.print(f"Next: [info]bookgen write {book.id[:8]}[/]")


# ---------------------------------------------------------------------------
# write command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("book_id")
@click.option("--research", is_flag=True, help="Research each section before writing it")
@click.pass_context
def write(ctx, book_id, research):
    """Generate chapter outlines and content for every unfinished section.

    Safe to re-run after an interruption: completed sections are kept.
    """
    settings = ctx.obj["settings"]
    db = Database(settings.sqlite_db_path)
    book = _load_book(db, book_id)

    console.print(app_header())
    console.print(book_summary_panel(book))
    console.print()

    pipeline = GenerationPipeline(ServiceRouter(settings), settings)
    run = pipeline.generate_all_with_research if research else pipeline.generate_all
    credentials = AICredentials.from_settings(settings)

    progress = RichProgress(console)
    try:
        with progress:
            asyncio.run(run(
                book,
                credentials,
                on_progress=chain_progress(db.save_book, LoggingProgress(), progress),
                environment=_environment(ctx),
            ))
    except KeyboardInterrupt as e:
        _fail(e, book)
    except BookGenError as e:
        _fail(e, book)

    console.print()
    console.print(success_panel(
        "Book complete",
        f"{book.title}: {book.count_sections()} sections in {len(book.chapters)} chapters",
    ))
    console.print(f"Read it with: [info]bookgen show {book.id[:8]} --content[/]")


# ---------------------------------------------------------------------------
# convert command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("book_id")
@click.option("--heat-level", "-l", default=None, type=click.Choice([h.value for h in HeatLevel]),
              help="Target heat level")
@click.option("--resume", is_flag=True,
              help="Finish an interrupted conversion; BOOK_ID is the converted copy")
@click.pass_context
def convert(ctx, book_id, heat_level, resume):
    """Create a new version of a book rewritten at another heat level.

    \b
    Examples:
      bookgen convert 1a2b3c4d -l steamy
      bookgen convert 9f8e7d6c --resume
    """
    settings = ctx.obj["settings"]
    if resume == bool(heat_level):
        raise click.UsageError("Pass either --heat-level or --resume")

    db = Database(settings.sqlite_db_path)
    book = _load_book(db, book_id)
    if resume and book.heat_level is None:
        console.print(f"[error]'{book.title}' has no heat level; it is not a converted copy[/]")
        sys.exit(1)

    console.print(app_header())
    if resume:
        console.print(command_panel("Resume heat level conversion", {
            "Book": book.title,
            "Heat level": book.heat_level.label,
            "Done": f"{book.count_sections(NodeStatus.COMPLETED)}/{book.count_sections()} sections",
        }))
    else:
        console.print(command_panel("Heat level conversion", {
            "Book": book.title,
            "From": book.heat_level.label if book.heat_level else "-",
            "To": HeatLevel(heat_level).label,
        }))
    console.print()

    pipeline = GenerationPipeline(ServiceRouter(settings), settings)
    converter = HeatLevelConverter(pipeline)
    credentials = AICredentials.from_settings(settings)
    latest = {"book": book} if resume else {}

    def _remember(snapshot: Book):
        latest["book"] = snapshot

    progress = RichProgress(console)
    on_progress = chain_progress(db.save_book, _remember, LoggingProgress(), progress)
    try:
        with progress:
            if resume:
                derived = asyncio.run(converter.resume(
                    book, credentials, on_progress=on_progress, environment=_environment(ctx),
                ))
            else:
                derived = asyncio.run(converter.convert(
                    book, heat_level, credentials, on_progress=on_progress, environment=_environment(ctx),
                ))
    except KeyboardInterrupt as e:
        _fail(e, latest.get("book"), resume="bookgen convert {id} --resume")
    except BookGenError as e:
        _fail(e, latest.get("book"), resume="bookgen convert {id} --resume")

    console.print()
    console.print(success_panel("Conversion complete", f"{derived.title} [muted](ID: {derived.id[:8]})[/]"))


# ---------------------------------------------------------------------------
# cover command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("book_id")
@click.option("--chapter", "-c", "chapter_number", type=int, default=None,
              help="Illustrate this chapter (1-based) instead of the cover")
@click.pass_context
def cover(ctx, book_id, chapter_number):
    """Generate a cover image (or a chapter illustration) for a book."""
    settings = ctx.obj["settings"]
    db = Database(settings.sqlite_db_path)
    book = _load_book(db, book_id)
    router = ServiceRouter(settings)
    credentials = AICredentials.from_settings(settings)

    if chapter_number is not None and not 1 <= chapter_number <= len(book.chapters):
        console.print(f"[error]Chapter {chapter_number} does not exist (book has {len(book.chapters)})[/]")
        sys.exit(1)

    try:
        with console.status("Generating image..."):
            if chapter_number is None:
                asyncio.run(generate_cover(book, router, credentials, _environment(ctx)))
            else:
                chapter_id = book.chapters[chapter_number - 1].id
                asyncio.run(generate_chapter_image(book, chapter_id, router, credentials, _environment(ctx)))
    except KeyboardInterrupt as e:
        _fail(e)
    except BookGenError as e:
        _fail(e)

    db.save_book(book)
    target = "Cover" if chapter_number is None else f"Chapter {chapter_number} illustration"
    console.print(success_panel("Image saved", f"{target} stored for '{book.title}'"))


# ---------------------------------------------------------------------------
# list / show commands
# ---------------------------------------------------------------------------

@cli.command(name="list")
@click.pass_context
def list_books(ctx):
    """List saved books."""
    db = Database(ctx.obj["settings"].sqlite_db_path)
    books = db.list_books()
    if not books:
        console.print("[muted]No books yet. Create one with: bookgen outline -p \"...\"[/]")
        return
    console.print(book_table(books))


@cli.command()
@click.argument("book_id")
@click.option("--content", is_flag=True, help="Print generated section text")
@click.pass_context
def show(ctx, book_id, content):
    """Show a book's structure and, optionally, its text."""
    db = Database(ctx.obj["settings"].sqlite_db_path)
    book = _load_book(db, book_id)

    console.print(book_summary_panel(book))
    console.print(book_tree(book))

    if content:
        for chapter, section in book.iter_sections():
            if not section.content:
                continue
            console.print()
            console.print(app_header(f"{chapter.title} / {section.title}"))
            console.print(section.content)


# ---------------------------------------------------------------------------
# delete / backup commands
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("book_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx, book_id, yes):
    """Delete a saved book."""
    db = Database(ctx.obj["settings"].sqlite_db_path)
    book = _load_book(db, book_id)
    if not yes and not click.confirm(f"Delete '{book.title}' ({book.id[:8]})?"):
        console.print("[muted]Nothing deleted[/]")
        return
    db.delete_book(book.id)
    console.print(success_panel("Book deleted", f"{book.title} [muted](ID: {book.id[:8]})[/]"))


@cli.command()
@click.argument("target", required=False, type=click.Path(dir_okay=False))
@click.pass_context
def backup(ctx, target):
    """Copy the book database to TARGET (default: a timestamped file beside it)."""
    settings = ctx.obj["settings"]
    db = Database(settings.sqlite_db_path)
    if target is None:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        db_path = Path(settings.sqlite_db_path)
        target = db_path.with_name(f"{db_path.stem}-{stamp}{db_path.suffix}.bak")
    saved = db.backup_database(target)
    console.print(success_panel("Backup written", str(saved)))


# ---------------------------------------------------------------------------
# probe command
# ---------------------------------------------------------------------------

@cli.command()
@click.pass_context
def probe(ctx):
    """Check which local AI CLIs are installed and which providers are configured."""
    settings = ctx.obj["settings"]
    router = ServiceRouter(settings)
    capabilities = asyncio.run(router.probe.probe())
    credentials = AICredentials.from_settings(settings)
    env = _environment(ctx)

    def _mark(ok: bool) -> str:
        return "[success]yes[/]" if ok else "[muted]no[/]"

    console.print(command_panel("Providers", {
        "Claude Code CLI": _mark(capabilities.claude_code),
        "Codex CLI": _mark(capabilities.codex),
        "Local mode": _mark(env.local_allowed),
        "Bedrock (primary)": _mark(credentials.has_primary),
        "Gemini (secondary)": _mark(credentials.has_secondary),
        "Perplexity (research)": _mark(credentials.has_research),
    }))


if __name__ == "__main__":
    cli()

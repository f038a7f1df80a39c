"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme
from rich.tree import Tree

from models.book import Book
from models.enums import NodeStatus

BOOK_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "genre": "bold",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.title": "bold cyan",
    "status.pending": "dim",
    "status.generating": "yellow",
    "status.completed": "green",
})

_STATUS_MARKS = {
    NodeStatus.PENDING: "[status.pending]○[/]",
    NodeStatus.GENERATING: "[status.generating]◐[/]",
    NodeStatus.COMPLETED: "[status.completed]●[/]",
}


def get_console() -> Console:
    """Return a Console instance with the book theme applied."""
    return Console(theme=BOOK_THEME)


def app_header(title: str = "bookgen") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "New outline").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def book_summary_panel(book: Book) -> Panel:
    description = book.description or ""
    if len(description) > 150:
        description = description[:150] + "..."

    heat = f"  [muted]|[/]  [stat.label]Heat:[/] [stat.value]{book.heat_level.label}[/]" if book.heat_level else ""
    body = (
        f"  [stat.label]Genre:[/] [genre]{book.genre or '-'}[/]  "
        f"[muted]|[/]  [stat.label]Chapters:[/] [stat.value]{len(book.chapters)}[/]  "
        f"[muted]|[/]  [stat.label]Sections:[/] "
        f"[stat.value]{book.count_sections(NodeStatus.COMPLETED)}/{book.count_sections()}[/]"
        f"{heat}\n"
        f"  [stat.label]Status:[/] {book.status.value}\n"
        f"  [stat.label]Description:[/] {description}"
    )
    return Panel(
        body,
        title=f"[bold]{book.title}[/] [muted](ID: {book.id[:8]})[/]",
        box=box.ROUNDED,
        border_style="dim",
        padding=(0, 2),
    )


def book_tree(book: Book, max_sections: int = 10) -> Tree:
    """Build a Rich Tree showing the chapter/section structure with status marks."""
    tree = Tree(f"[bold]{book.title}[/]")
    for number, chapter in enumerate(book.chapters, start=1):
        branch = tree.add(f"{_STATUS_MARKS[chapter.status]} [chapter.title]{number}. {chapter.title}[/]")
        if chapter.sub_chapters is None:
            branch.add("[muted](outline not generated)[/]")
            continue
        for section in chapter.sub_chapters[:max_sections]:
            branch.add(f"{_STATUS_MARKS[section.status]} {section.title}")
        if len(chapter.sub_chapters) > max_sections:
            branch.add(f"[muted]... ({len(chapter.sub_chapters)} sections)[/]")
    return tree


def book_table(books: list[Book]) -> Table:
    table = Table(box=box.ROUNDED, border_style="dim", show_header=True, padding=(0, 1))
    table.add_column("ID", style="muted")
    table.add_column("Title", style="bold")
    table.add_column("Genre")
    table.add_column("Status")
    table.add_column("Sections", justify="right")

    for book in books:
        table.add_row(
            book.id[:8],
            book.title,
            book.genre or "-",
            book.status.value,
            f"{book.count_sections(NodeStatus.COMPLETED)}/{book.count_sections()}",
        )
    return table

"""LangGraph pipeline state definition."""

from typing import TypedDict


class PipelineState(TypedDict, total=False):
    """Traversal state shared by all pipeline nodes.

    The Book itself is not part of graph state; it is mutated in place on
    the per-run object so every emitted snapshot reflects exactly one
    transition. Fields are grouped logically:
    - Mode: mode ("standard", "research" or "heat")
    - Cursor: chapter_index, section_index, next_action
    - Counters: outlines_generated, sections_generated, chapters_completed
    - Control: last_node
    """

    # Mode
    mode: str

    # Cursor
    chapter_index: int
    section_index: int
    next_action: str

    # Counters
    outlines_generated: int
    sections_generated: int
    chapters_completed: int

    # Control flow
    last_node: str

"""Conditional routing functions for the generation pipeline graph."""

from workflow.state import PipelineState


def route_after_select(state: PipelineState) -> str:
    """Route after select_next: outline a chapter, write a section, close a chapter, or finish."""
    action = state.get("next_action", "finalize")
    if action in ("outline_chapter", "generate_section", "complete_chapter"):
        return action
    return "finalize"

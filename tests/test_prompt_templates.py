"""Tests for the shared markdown prompt templates."""

import pytest

TEMPLATE = """# Sample

## System Prompt
Be brief.

## Instructions
Write about {topic}.
Return JSON like {"title": "..."}

## Other
Ignored.
"""


class TestPromptTemplates:
    def test_extract_section_stops_at_next_header(self):
        from tools.prompt_templates import extract_section
        section = extract_section(TEMPLATE, "Instructions")
        assert section.startswith("Write about {topic}.")
        assert "Ignored" not in section

    def test_extract_missing_section_is_empty(self):
        from tools.prompt_templates import extract_section
        assert extract_section(TEMPLATE, "Nope") == ""

    def test_fill_leaves_json_braces(self):
        from tools.prompt_templates import fill_template
        filled = fill_template("Write about {topic}. {\"title\": \"x\"} {context}", topic="tides", context=None)
        assert filled == "Write about tides. {\"title\": \"x\"} "

    def test_every_template_has_a_system_prompt(self):
        from tools.prompt_templates import PROMPTS_DIR, extract_section, load_prompt
        for path in PROMPTS_DIR.glob("*.md"):
            if path.stem == "images":
                continue
            assert extract_section(load_prompt(path.stem), "System Prompt"), path.name

    def test_render_research(self):
        from tools.prompt_templates import render_prompts
        system, user = render_prompts("research", "Research Instructions", topic="Tides", context="a harbor")
        assert "research assistant" in system
        assert "about: Tides" in user
        assert "Context: a harbor" in user

    def test_unknown_template(self):
        from tools.prompt_templates import load_prompt
        with pytest.raises(FileNotFoundError):
            load_prompt("missing")

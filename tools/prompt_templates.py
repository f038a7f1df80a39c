"""Markdown prompt templates in config/prompts/.

Each template is split into ``## `` sections; ``{name}`` placeholders are
filled by plain substitution so JSON examples in the text keep their braces.
"""

from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"


@lru_cache(maxsize=32)
def _read_prompt_file(path: str) -> str:
    """Read and cache a prompt file by absolute path string."""
    return Path(path).read_text(encoding="utf-8")


def load_prompt(template_name: str) -> str:
    """Load a prompt template from config/prompts/ (cached after first read)."""
    path = PROMPTS_DIR / f"{template_name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    return _read_prompt_file(str(path))


def extract_section(template: str, section_header: str) -> str:
    """Extract a specific section from a prompt template.

    Sections are delimited by '## ' headers in the markdown.
    """
    lines = template.split("\n")
    capturing = False
    result = []
    for line in lines:
        if line.strip().startswith("## ") and section_header in line:
            capturing = True
            continue
        elif line.strip().startswith("## ") and capturing:
            break
        elif capturing:
            result.append(line)
    return "\n".join(result).strip()


def fill_template(template: str, **values) -> str:
    """Substitute ``{name}`` placeholders; other braces (JSON examples) are left alone."""
    for key, value in values.items():
        template = template.replace("{" + key + "}", "" if value is None else str(value))
    return template


def render_prompts(template_name: str, instructions: str, **values) -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for one template section."""
    template = load_prompt(template_name)
    system_prompt = extract_section(template, "System Prompt")
    user_prompt = fill_template(extract_section(template, instructions), **values)
    return system_prompt, user_prompt

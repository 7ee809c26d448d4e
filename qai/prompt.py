"""System prompt loading and rendering.

The prompt is a Jinja2 template. A user override at
~/.config/qai/prompts/system.pmt replaces the packaged default
(templates/system_prompt.j2). Available variables:
- shell, os, cwd: the user's environment
- available_tools: hint listing installed modern tools (may be empty)
- multi, count: whether several commands are requested, and how many
"""

import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import jinja2

from .errors import PromptError
from .xdg import get_config_dir

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_PROMPT_TEMPLATE = "system_prompt.j2"
USER_PROMPT_FILENAME = "system.pmt"

_env = jinja2.Environment(
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


@dataclass
class PromptContext:
    """Context variables for prompt template substitution."""
    shell: str
    os: str
    cwd: str
    available_tools: str = ""

    @classmethod
    def detect(cls, available_tools: str = "") -> "PromptContext":
        """Build a context from the current process environment."""
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = "."
        return cls(
            shell=os.environ.get("SHELL") or "bash",
            os=platform.system().lower() or "unknown",
            cwd=cwd,
            available_tools=available_tools,
        )


def get_user_prompt_path() -> Path:
    """Get the user override path (XDG_CONFIG_HOME/qai/prompts/system.pmt)."""
    return get_config_dir() / "prompts" / USER_PROMPT_FILENAME


def load_prompt_from_file(path: Path) -> str:
    """Load a prompt template from a specific file.

    Raises:
        PromptError: If the file cannot be read
    """
    logger.info(f"Loading prompt from: {path}")
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise PromptError(f"Failed to read prompt file {path}: {e}") from e


def load_system_prompt(override: Optional[Path] = None) -> str:
    """Load the system prompt template.

    Priority:
    1. override argument (if given)
    2. User override: ~/.config/qai/prompts/system.pmt
    3. Packaged default
    """
    if override is not None:
        return load_prompt_from_file(override)

    user_prompt = get_user_prompt_path()
    if user_prompt.exists():
        return load_prompt_from_file(user_prompt)

    logger.debug("Using packaged default prompt")
    return load_prompt_from_file(TEMPLATE_DIR / DEFAULT_PROMPT_TEMPLATE)


def render_prompt(
    template: str,
    context: PromptContext,
    multi: bool = False,
    count: int = 5,
) -> str:
    """Render a prompt template with the given context.

    Raises:
        PromptError: If the template has invalid Jinja2 syntax
    """
    try:
        return _env.from_string(template).render(
            shell=context.shell,
            os=context.os,
            cwd=context.cwd,
            available_tools=context.available_tools,
            multi=multi,
            count=count,
        )
    except jinja2.TemplateError as e:
        raise PromptError(f"Failed to render system prompt: {e}") from e

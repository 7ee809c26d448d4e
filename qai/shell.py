"""Shell integration scripts.

`qai shell-init zsh` prints an init script; users add
`eval "$(qai shell-init zsh)"` to their .zshrc.
"""

import logging
from pathlib import Path
from typing import Tuple

import jinja2

from .bindings import key_name_to_sequence
from .config import QaiSettings
from .errors import UnsupportedShellError

logger = logging.getLogger(__name__)

SUPPORTED_SHELLS: Tuple[str, ...] = ("zsh",)

_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(Path(__file__).parent / "templates"),
    keep_trailing_newline=True,
    undefined=jinja2.StrictUndefined,
)


def supported_shells() -> Tuple[str, ...]:
    return SUPPORTED_SHELLS


def generate_zsh_init_script(settings: QaiSettings) -> str:
    """Render the zsh widget script with the configured key bindings.

    Raises:
        InvalidKeyNameError: If a binding names an unknown key
    """
    bindings = settings.bindings
    trigger_seq = key_name_to_sequence(bindings.trigger)
    submit_seq = key_name_to_sequence(bindings.submit)
    logger.debug(f"zsh bindings: trigger={trigger_seq!r} submit={submit_seq!r}")

    return _env.get_template("zsh_init.j2").render(
        trigger_name=bindings.trigger,
        trigger_seq=trigger_seq,
        submit_name=bindings.submit,
        submit_seq=submit_seq,
    )


def generate_init_script(shell: str, settings: QaiSettings) -> str:
    """Generate the init script for `shell` (case-insensitive).

    Raises:
        UnsupportedShellError: If no script exists for the shell
        InvalidKeyNameError: If a binding names an unknown key
    """
    if shell.strip().lower() == "zsh":
        return generate_zsh_init_script(settings)
    raise UnsupportedShellError(shell, SUPPORTED_SHELLS)

"""Key name to zsh bindkey sequence mapping.

Lets users write keys like "tab", "ctrl-space" or "f1" in qai.yml instead
of raw escape sequences.
"""

import string
from typing import Dict

from .errors import InvalidKeyNameError


def _build_key_map() -> Dict[str, str]:
    keys = {
        "tab": "^I",
        "enter": "^M",
        "return": "^M",
        "escape": "^[",
        "esc": "^[",
        "backspace": "^?",
        # Ctrl + special
        "ctrl-space": "^@",
        "ctrl-backslash": "^\\",
        "ctrl-]": "^]",
        "ctrl-^": "^^",
        "ctrl-_": "^_",
        # Function keys (xterm)
        "f1": "^[OP",
        "f2": "^[OQ",
        "f3": "^[OR",
        "f4": "^[OS",
        "f5": "^[[15~",
        "f6": "^[[17~",
        "f7": "^[[18~",
        "f8": "^[[19~",
        "f9": "^[[20~",
        "f10": "^[[21~",
        "f11": "^[[23~",
        "f12": "^[[24~",
        # Arrows
        "up": "^[[A",
        "down": "^[[B",
        "right": "^[[C",
        "left": "^[[D",
        # Navigation
        "home": "^[[H",
        "end": "^[[F",
        "insert": "^[[2~",
        "delete": "^[[3~",
        "page-up": "^[[5~",
        "pageup": "^[[5~",
        "page-down": "^[[6~",
        "pagedown": "^[[6~",
    }
    # ctrl-a .. ctrl-z (ctrl-i is tab, ctrl-m is enter)
    for letter in string.ascii_lowercase:
        keys[f"ctrl-{letter}"] = f"^{letter.upper()}"
    return keys


KEY_MAP: Dict[str, str] = _build_key_map()


def valid_key_names():
    """Sorted list of accepted key names."""
    return sorted(KEY_MAP)


def key_name_to_sequence(name: str) -> str:
    """Convert a friendly key name to a zsh bindkey sequence.

    Lookup is case-insensitive; spaces are read as dashes ("page up").

    Raises:
        InvalidKeyNameError: If the name is unknown
    """
    normalized = name.strip().lower().replace(" ", "-")
    try:
        return KEY_MAP[normalized]
    except KeyError:
        raise InvalidKeyNameError(name, valid_key_names()) from None

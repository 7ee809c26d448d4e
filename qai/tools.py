"""Tool discovery and command validation.

Multi-result queries ask the model for two lists, commands using modern
tools and commands using standard Unix tools. The tool cache records which
binaries exist on this machine so that suggestions naming missing tools
can be dropped, and so the prompt can mention the modern tools installed.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, ValidationError

from .xdg import get_cache_dir

logger = logging.getLogger(__name__)

CACHE_FILENAME = "tools.json"
CACHE_VERSION = 1

# Standard Unix tools; never advertised in the prompt
STANDARD_TOOLS = frozenset({
    "ls", "cat", "grep", "find", "awk", "sed", "sort", "uniq", "head", "tail",
    "cut", "wc", "du", "df", "ps", "top", "chmod", "chown", "cp", "mv", "rm",
    "mkdir", "rmdir", "curl", "wget", "tar", "gzip", "gunzip", "zip", "unzip",
    "echo", "printf", "test", "true", "false", "cd", "pwd", "env", "export",
    "source", "sh", "bash", "zsh",
})

# Prefixes skipped when looking for the binary a command runs
SKIP_WORDS = frozenset({"sudo", "env", "time", "nice", "nohup", "strace", "ltrace", "doas"})

# Probed by `qai tools --refresh`
MODERN_TOOLS = (
    "eza", "exa", "lsd", "bat", "fd", "rg", "ag", "fzf", "zoxide", "delta",
    "dust", "duf", "procs", "btm", "htop", "sd", "jq", "yq", "xh", "http",
    "tldr", "hyperfine", "tokei", "ncdu", "gping", "choose",
)

_MODERN_MARKER = "modern:"
_STANDARD_MARKER = "standard:"


@dataclass
class DualCommandList:
    """Parsed MODERN/STANDARD response from the model."""
    modern: List[str] = field(default_factory=list)
    standard: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, response: str) -> "DualCommandList":
        """Parse a model response into the two lists.

        Section markers are case-insensitive and anything after the colon
        on the marker line is ignored. Lines before any marker count as
        standard commands.
        """
        result = cls()
        section = result.standard

        for raw_line in response.splitlines():
            line = raw_line.strip()
            lower = line.lower()

            if lower.startswith(_MODERN_MARKER):
                section = result.modern
                continue
            if lower.startswith(_STANDARD_MARKER):
                section = result.standard
                continue

            if not line or line.startswith("#") or line.startswith("```"):
                continue

            section.append(line)

        return result

    def all_commands(self) -> List[str]:
        """All commands, modern first."""
        return self.modern + self.standard

    def is_empty(self) -> bool:
        return not self.modern and not self.standard

    def __len__(self) -> int:
        return len(self.modern) + len(self.standard)


@dataclass
class ToolStats:
    """Tool cache statistics."""
    available_count: int
    unavailable_count: int
    modern_tools_count: int


class _CacheFile(BaseModel):
    """On-disk format of tools.json."""
    available: List[str] = []
    unavailable: List[str] = []
    version: int = 0


def get_cache_path() -> Path:
    """Get the default cache path (XDG_CACHE_HOME/qai/tools.json)."""
    return get_cache_dir() / CACHE_FILENAME


class ToolCache:
    """Memoized `which` lookups, persisted between invocations."""

    def __init__(
        self,
        available: Optional[Iterable[str]] = None,
        unavailable: Optional[Iterable[str]] = None,
    ):
        self.available: Set[str] = set(available or ())
        self.unavailable: Set[str] = set(unavailable or ())
        self.version = CACHE_VERSION
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ToolCache":
        """Load the cache; missing, corrupt or outdated files give a fresh cache."""
        path = path or get_cache_path()
        try:
            data = _CacheFile.model_validate_json(path.read_bytes())
        except FileNotFoundError:
            return cls()
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable tool cache {path}: {e}")
            return cls()

        if data.version != CACHE_VERSION:
            logger.info(f"Tool cache version {data.version} != {CACHE_VERSION}, starting fresh")
            return cls()

        return cls(available=data.available, unavailable=data.unavailable)

    def save(self, path: Optional[Path] = None) -> None:
        """Write the cache if it changed.

        Raises:
            OSError: If the cache file cannot be written
        """
        if not self._dirty:
            return
        path = path or get_cache_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        data = _CacheFile(
            available=sorted(self.available),
            unavailable=sorted(self.unavailable),
            version=self.version,
        )
        path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
        self._dirty = False

    def is_available(self, binary: str) -> bool:
        if binary in self.available:
            return True
        if binary in self.unavailable:
            return False

        exists = shutil.which(binary) is not None
        if exists:
            self.available.add(binary)
        else:
            self.unavailable.add(binary)
        self._dirty = True
        return exists

    @staticmethod
    def extract_binary(command: str) -> Optional[str]:
        """Find the binary a command runs, skipping sudo/env/time prefixes,
        VAR=value assignments, flags and numeric arguments."""
        for word in command.split():
            if "=" in word or word.startswith("-") or word[0].isdigit():
                continue
            if word in SKIP_WORDS:
                continue
            return word
        return None

    def filter_commands(self, commands: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Split commands into (available, unavailable).

        Commands without a recognizable binary count as available.
        """
        available: List[str] = []
        unavailable: List[str] = []
        for command in commands:
            binary = self.extract_binary(command)
            if binary is None or self.is_available(binary):
                available.append(command)
            else:
                unavailable.append(command)
        return available, unavailable

    def process_response(self, response: DualCommandList) -> List[str]:
        """Available modern commands first, then available standard ones."""
        modern, dropped_modern = self.filter_commands(response.modern)
        standard, dropped_standard = self.filter_commands(response.standard)

        dropped = dropped_modern + dropped_standard
        if dropped:
            logger.debug(f"Dropped commands with missing tools: {dropped}")

        result = modern + standard
        if not result:
            return list(response.standard)
        return result

    def _modern_available(self) -> List[str]:
        return sorted(t for t in self.available if t not in STANDARD_TOOLS)

    def available_tools_for_prompt(self) -> str:
        """Prompt hint naming the non-standard tools installed, or ""."""
        tools = self._modern_available()
        if not tools:
            return ""
        return (
            f"User has these modern tools installed: {', '.join(tools)}\n"
            "Prefer these when appropriate.\n"
        )

    def refresh(self, candidates: Iterable[str] = MODERN_TOOLS) -> List[str]:
        """Clear the cache and probe `candidates`; returns those found."""
        self.clear()
        found = [name for name in candidates if self.is_available(name)]
        logger.info(f"Tool probe found: {', '.join(found) or 'none'}")
        return found

    def clear(self) -> None:
        self.available.clear()
        self.unavailable.clear()
        self._dirty = True

    def stats(self) -> ToolStats:
        return ToolStats(
            available_count=len(self.available),
            unavailable_count=len(self.unavailable),
            modern_tools_count=len(self._modern_available()),
        )

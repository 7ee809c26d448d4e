"""qai - Natural language to shell commands via LLM.

A command-line assistant that turns natural-language requests into shell
commands:
- `qai query` asks an OpenAI-compatible model for one or more commands
- `qai shell-init zsh` prints the ZLE widgets for the `ai` + Tab workflow
- A local learning store re-ranks suggestions using past selections
- `qai history` and `qai tools` inspect the local state
"""

__version__ = "0.3.0"

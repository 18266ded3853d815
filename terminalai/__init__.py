"""Top-level package for Terminal AI.

This package implements a family of command line tools that turn
natural language requests into shell commands using a large language
model, then run them after the user confirms each one.  The
single-skill tools (``cp_ai``, ``grep_ai``, ``find_ai``, ``ps_ai`` and
``resolve_ai``) only accept prompts within their own domain; ``tai -p``
handles everything else.

The core pipeline lives in :mod:`terminalai.pipeline`.  Helper modules
hold the skill definitions, prompt validation, the provider
abstraction, command extraction and the executor.  See
``DESIGN.md`` for a detailed overview of the design.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "definitions",
    "errors",
    "executor",
    "extractor",
    "pipeline",
    "providers",
    "server",
    "state",
    "validator",
]

"""Data package for terminalai.

This subpackage holds the compiled-in skill definitions, one
``<skill>.conf`` file per skill.  They are read by
:mod:`terminalai.definitions` through :mod:`importlib.resources` and
are not meant to be edited at runtime.
"""

__all__ = []

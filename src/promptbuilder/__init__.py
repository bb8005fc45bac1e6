"""
Prompt Builder - keep a list of source files and dump them for LLM prompts.

This package tracks a persisted, deduplicated list of files selected from a
directory tree (honouring .gitignore rules and built-in exclusions) and prints
their contents wrapped in ``<file>`` tags, ready to paste into a prompt.
"""

__version__ = "0.1.0"
__author__ = "Prompt Builder Team"

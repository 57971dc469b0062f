"""Questionary / prompt_toolkit theme for dbmeta.

Questionary uses prompt_toolkit under the hood. This module defines the
central styles so interactive prompts look the same in every command.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_CONFIRM = Style.from_dict(
    {
        "qmark": "bold ansicyan",
        "question": "bold ansibrightcyan",
        "answer": "bold ansibrightgreen",
        "pointer": "bold ansibrightgreen",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
    }
)

# Applying changes to a database someone else may be using.
QUESTIONARY_STYLE_DANGER = Style.from_dict(
    {
        "qmark": "bold ansired",
        "question": "bold ansibrightred",
        "answer": "bold ansibrightred",
        "pointer": "bold ansibrightred",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
    }
)

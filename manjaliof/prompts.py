"""
Interactive prompts for values not given on the command line.

Prompts go to stderr so `manjaliof list` output stays clean. When stdin
is not interactive (EOF), the missing value is reported as invalid input.
"""

import sys
from typing import Optional, Sequence

from manjaliof.validation import InvalidInputError


def _ask(label: str) -> str:
    print(label, end="", file=sys.stderr, flush=True)
    try:
        return input()
    except EOFError:
        raise InvalidInputError(f"missing value for '{label.rstrip(': ')}'")


def prompt_text(label: str, initial: Optional[str] = None, allow_empty: bool = False) -> str:
    """Ask for text; an empty answer keeps `initial` when one is given."""
    suffix = f" [{initial}]" if initial else ""
    while True:
        answer = _ask(f"{label}{suffix}: ").strip()
        if not answer and initial:
            return initial
        if answer or allow_empty:
            return answer


def prompt_number(label: str, default: Optional[int] = None) -> int:
    suffix = f" [{default}]" if default is not None else ""
    while True:
        answer = _ask(f"{label}{suffix}: ").strip()
        if not answer and default is not None:
            return default
        if answer.isdigit():
            return int(answer)
        print("this field must be numeric", file=sys.stderr)


def prompt_choice(label: str, choices: Sequence[str]) -> str:
    for index, choice in enumerate(choices, start=1):
        print(f"  {index}) {choice}", file=sys.stderr)
    while True:
        answer = _ask(f"{label}: ").strip()
        if answer in choices:
            return answer
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return choices[int(answer) - 1]

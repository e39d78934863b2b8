"""Pretokenizer split patterns and the lazy word splitter."""

from collections.abc import Iterator
from enum import Enum

import regex as re

from .errors import PatternError


class TokenPattern(str, Enum):
    """
    Pre-defined regex patterns for splitting text before BPE.

    Each alternative is tried in order at the current position; contractions
    win over letter runs, letter runs over digit runs and so on.

    Sources:
    - GPT2: https://github.com/openai/tiktoken/blob/main/tiktoken_ext/openai_public.py
    """

    # contractions | ?letters | ?digits | ?other | whitespace runs
    SIMPLE = (
        r"'(?:[sdmt]|ll|ve|re)|"
        r" ?\p{L}+|"
        r" ?\p{N}+|"
        r" ?[^\s\p{L}\p{N}]+|"
        r"\s+"
    )

    # as SIMPLE, but the last space before a word is left for the word
    GPT2 = (
        r"'(?:[sdmt]|ll|ve|re)|"
        r" ?\p{L}+|"
        r" ?\p{N}+|"
        r" ?[^\s\p{L}\p{N}]+|"
        r"\s+(?!\S)|"
        r"\s+"
    )

    @classmethod
    def get(cls, name: str) -> str:
        """Get patterns by name (case-insensitive)."""
        try:
            return cls[name.upper().replace("-", "_")].value
        except KeyError:
            raise PatternError(
                f"Unknown pattern: {name!r}. "
                f"Valid patterns: {', '.join(pat.name for pat in cls)}"
            )


def list_patterns() -> list[str]:
    """Return names of all available built-in split patterns."""
    return [pat.name for pat in TokenPattern]


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """
    Compile and validate a regex pattern.

    :param pattern: Regex pattern string to compile.
    :return: Compiled regex pattern.
    :raises PatternError: If pattern is invalid.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError("invalid regex pattern", pattern=pattern, regex_err=e)


def pretokenize(text: str, pattern: re.Pattern[str]) -> Iterator[str]:
    """
    Lazily split ``text`` into pretokens, left to right.

    Matches never overlap. With the built-in patterns every character is
    covered, so joining the pieces gives back ``text``. Calling again with the
    same input yields the same pieces.
    """
    for m in pattern.finditer(text):
        yield m.group(0)

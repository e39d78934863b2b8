"""
Vocabulary and merge rule tables, plus loaders for their on-disk formats.

The vocabulary file is a JSON object mapping token strings (written in
byte-mapped symbols) to integer ids. The merges file is line oriented: the
first line is a version header and is skipped, every further non-blank line
holds two whitespace-separated symbols forming one rule, in priority order.
"""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from .bimap import BiMap
from .errors import ModelLoadError, VocabularyError
from .types import MergeRanks, SymbolPair, Token

log = logging.getLogger(__name__)


class Vocabulary:
    """Bidirectional token-string <-> id table, read-only after construction."""

    def __init__(self, token_to_id: Mapping[str, Token]) -> None:
        self._map: BiMap[str, Token] = BiMap(token_to_id)

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, token: object) -> bool:
        return token in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def get_id(self, token: str) -> Token | None:
        """Return the id for ``token`` or ``None`` if it is not in the vocabulary."""
        return self._map.get(token)

    def get_token(self, tok_id: Token) -> str | None:
        """Return the token string for ``tok_id`` or ``None`` if unknown."""
        return self._map.get_inverse(tok_id)


class MergeTable:
    """
    Ordered list of merge rules; a rule's index is its rank.

    Lower rank means higher merge priority. A precomputed pair -> rank lookup
    replaces scanning the rule list for every candidate pair. If a pair is
    listed twice, its first (lowest) rank wins.
    """

    def __init__(self, rules: Iterable[SymbolPair]) -> None:
        self._rules: tuple[SymbolPair, ...] = tuple(rules)
        ranks: MergeRanks = {}
        for rank, pair in enumerate(self._rules):
            ranks.setdefault(pair, rank)
        self._ranks = ranks

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, rank: int) -> SymbolPair:
        return self._rules[rank]

    def __iter__(self) -> Iterator[SymbolPair]:
        return iter(self._rules)

    def rank(self, pair: SymbolPair) -> int | None:
        """Return the rank of ``pair`` or ``None`` if no rule merges it."""
        return self._ranks.get(pair)

    @property
    def ranks(self) -> MergeRanks:
        return self._ranks


def load_vocab(vocab_path: str | Path) -> Vocabulary:
    """
    Load a token -> id mapping from a JSON object file.

    :param vocab_path: Path to the vocabulary JSON file.
    :return: Loaded vocabulary.
    :raises ModelLoadError: If the file cannot be opened, is not UTF-8 or is not a JSON object of ints.
    """
    path = Path(vocab_path)
    log.debug(f"loading vocabulary from {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ModelLoadError("failed to open vocab file", path=str(path)) from e
    except UnicodeDecodeError as e:
        raise ModelLoadError(f"vocab file is not valid utf-8: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        raise ModelLoadError(f"invalid vocab json: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise ModelLoadError("vocab file must hold a json object", path=str(path))

    token_to_id: dict[str, Token] = {}
    for tok, tok_id in raw.items():
        # json booleans are ints in python, reject them explicitly
        if not isinstance(tok_id, int) or isinstance(tok_id, bool):
            raise ModelLoadError(
                f"token id is not an integer: {tok!r} -> {tok_id!r}", path=str(path)
            )
        token_to_id[tok] = tok_id

    try:
        vocab = Vocabulary(token_to_id)
    except VocabularyError as e:
        raise ModelLoadError(f"vocabulary is not one-to-one: {e}", path=str(path)) from e

    log.info(f"loaded {len(vocab)} tokens from vocabulary")
    return vocab


def load_merges(merges_path: str | Path) -> MergeTable:
    """
    Load ranked merge rules from a line-oriented text file.

    Line 1 is a version header and is discarded. Blank lines are skipped and
    lines without exactly two symbols are logged and skipped.
    Symbols are not checked against the vocabulary.

    :param merges_path: Path to the merges file.
    :return: Loaded merge table.
    :raises ModelLoadError: If the file cannot be opened or is not UTF-8.
    """
    path = Path(merges_path)
    log.debug(f"loading merge rules from {path}")
    rules: list[SymbolPair] = []
    try:
        with path.open("r", encoding="utf-8") as f:
            # skip version header
            f.readline()
            for lineno, line in enumerate(f, start=2):
                parts = line.split()
                if not parts:
                    continue
                if len(parts) != 2:
                    log.warning(
                        f"skipping malformed merge rule at line {lineno}: {line.strip()!r}"
                    )
                    continue
                first, second = parts
                rules.append((first, second))
    except OSError as e:
        raise ModelLoadError("failed to open merges file", path=str(path)) from e
    except UnicodeDecodeError as e:
        raise ModelLoadError(f"merges file is not valid utf-8: {e}", path=str(path)) from e

    table = MergeTable(rules)
    log.info(f"loaded {len(table)} merge rules")
    return table

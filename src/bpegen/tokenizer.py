"""
Byte-level BPE tokenizer backed by a pretrained vocabulary and merge table.
"""

import logging
from pathlib import Path
from typing import Final

from ._sanitise import render_token
from .bpe import bpe_merge
from .byte_map import BYTE_MAP, ByteMap
from .errors import ModelLoadError, VocabularyError
from .pattern import TokenPattern, compile_pattern, pretokenize
from .types import Symbol, Token
from .vocab import MergeTable, Vocabulary, load_merges, load_vocab

# longest symbol string tried when mapping decoded text back to bytes
MAX_SYMBOL_MATCH: Final[int] = 4

log = logging.getLogger(__name__)


class Tokenizer:
    """
    Tokenizer that splits text with a regex pattern, then applies ranked BPE
    merges over byte-mapped symbols.

    Vocabulary, merge table and byte map are read-only once loaded, so one
    instance can be shared by several generators.
    """

    def __init__(
        self,
        pattern: str | None = None,
        byte_map: ByteMap = BYTE_MAP,
    ) -> None:
        """Initialize an unloaded tokenizer with a provided or default split pattern."""
        if pattern is None:
            self.pat = TokenPattern.SIMPLE.value
        else:
            self.pat = pattern
        self.compiled_pat = compile_pattern(self.pat)
        self.byte_map = byte_map
        self.vocab: Vocabulary | None = None
        self.merges: MergeTable | None = None

    @classmethod
    def from_files(
        cls,
        vocab_path: str | Path,
        merges_path: str | Path,
        pattern: str | None = None,
    ) -> "Tokenizer":
        """
        Build a tokenizer from vocabulary and merge files.

        :raises ModelLoadError: If either file cannot be read.
        """
        tok = cls(pattern)
        tok._load(vocab_path, merges_path)
        return tok

    def load(self, vocab_path: str | Path, merges_path: str | Path) -> bool:
        """
        Load vocabulary and merge rules.

        Failures are logged and reported through the return value; the
        tokenizer state is only replaced when both files load.

        :param vocab_path: Path to the JSON vocabulary file.
        :param merges_path: Path to the merges text file.
        :return: ``True`` on success, ``False`` if either source failed to load.
        """
        try:
            self._load(vocab_path, merges_path)
        except ModelLoadError as e:
            log.error(f"failed to load tokenizer: {e}")
            return False
        return True

    def _load(self, vocab_path: str | Path, merges_path: str | Path) -> None:
        vocab = load_vocab(vocab_path)
        merges = load_merges(merges_path)
        self.vocab = vocab
        self.merges = merges

    @property
    def is_loaded(self) -> bool:
        return self.vocab is not None and self.merges is not None

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        return len(self._require_vocab())

    def token_to_id(self, token: str) -> Token | None:
        return self._require_vocab().get_id(token)

    def id_to_token(self, tok: Token) -> str | None:
        return self._require_vocab().get_token(tok)

    def bpe(self, pretoken: str) -> list[Symbol]:
        """Byte-map one pretoken and merge its symbols with the ranked rules."""
        symbols = self.byte_map.encode_bytes(pretoken.encode("utf-8"))
        if len(symbols) <= 1:
            return symbols
        merges = self._require_merges()
        return bpe_merge(symbols, merges.ranks)

    def encode(self, text: str) -> list[Token]:
        """
        Encode text into a sequence of tokens.

        Symbols missing from the vocabulary are logged and dropped; encoding
        carries on with the rest of the text.

        :param text: Text to encode.
        :returns: Encoded token sequence.
        :raises VocabularyError: If the tokenizer has not been loaded.
        """
        vocab = self._require_vocab()
        tokens: list[Token] = []
        for chunk in pretokenize(text, self.compiled_pat):
            for symbol in self.bpe(chunk):
                tok = vocab.get_id(symbol)
                if tok is None:
                    log.warning(f"unknown token {render_token(symbol, self.byte_map)!r}")
                    continue
                tokens.append(tok)
        return tokens

    def decode_bytes(self, tokens: list[Token]) -> bytes:
        """
        Decode tokens into the raw bytes they stand for.

        Unknown ids are skipped. The joined token strings are mapped back to
        bytes by greedy longest match against the byte map; characters with
        no match pass through as their UTF-8 encoding.

        :raises VocabularyError: If the tokenizer has not been loaded.
        """
        vocab = self._require_vocab()
        parts: list[str] = []
        for tok in tokens:
            token = vocab.get_token(tok)
            if token is None:
                log.debug(f"skipping unknown token id {tok}")
                continue
            parts.append(token)
        text = "".join(parts)

        out = bytearray()
        i = 0
        n = len(text)
        while i < n:
            for length in range(min(n - i, MAX_SYMBOL_MATCH), 0, -1):
                candidate = text[i : i + length]
                if self.byte_map.is_symbol(candidate):
                    out.append(self.byte_map.decode(candidate))
                    i += length
                    break
            else:
                out.extend(text[i].encode("utf-8"))
                i += 1
        return bytes(out)

    def decode(self, tokens: list[Token], errors: str = "replace") -> str:
        """
        Decode a sequence of tokens back into text.

        :param errors: How to handle invalid UTF-8, "strict" or "replace" (default: "replace").
        :raises VocabularyError: If the tokenizer has not been loaded.
        """
        return self.decode_bytes(tokens).decode("utf-8", errors=errors)

    def _require_vocab(self) -> Vocabulary:
        if self.vocab is None:
            raise VocabularyError(
                f"{self.__class__.__name__} must be loaded before use"
            )
        return self.vocab

    def _require_merges(self) -> MergeTable:
        if self.merges is None:
            raise VocabularyError(
                f"{self.__class__.__name__} must be loaded before use"
            )
        return self.merges

"""Shared fixtures: a tiny GPT-2 style vocabulary and merge file."""

import json

import pytest

from bpegen import BYTE_MAP, Tokenizer

# rule order is rank order
MERGES = [
    ("h", "e"),
    ("l", "l"),
    ("he", "ll"),
    ("hell", "o"),
    ("Ġ", "w"),
    ("o", "r"),
    ("Ġw", "or"),
    ("l", "d"),
    ("Ġwor", "ld"),
]

EOS = "<|endoftext|>"


def build_vocab() -> dict[str, int]:
    """Every byte symbol at id == byte value, then merged tokens, then EOS."""
    vocab = {BYTE_MAP.encode(b): b for b in range(256)}
    for first, second in MERGES:
        vocab[first + second] = len(vocab)
    vocab[EOS] = len(vocab)
    return vocab


VOCAB = build_vocab()
HELLO_ID = VOCAB["hello"]
WORLD_ID = VOCAB["Ġworld"]
EOS_ID = VOCAB[EOS]


def write_files(tmp_path, vocab: dict[str, int], merges: list[tuple[str, str]]):
    """Write vocab.json and merges.txt under ``tmp_path`` and return their paths."""
    vocab_path = tmp_path / "vocab.json"
    merges_path = tmp_path / "merges.txt"
    vocab_path.write_text(json.dumps(vocab, ensure_ascii=False), encoding="utf-8")
    lines = ["#version: 0.2"] + [f"{a} {b}" for a, b in merges]
    merges_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return vocab_path, merges_path


@pytest.fixture
def model_files(tmp_path):
    """Paths to the tiny vocabulary and merge files."""
    return write_files(tmp_path, VOCAB, MERGES)


@pytest.fixture
def tokenizer(model_files):
    """Return a loaded Tokenizer over the tiny vocabulary."""
    vocab_path, merges_path = model_files
    tok = Tokenizer()
    assert tok.load(vocab_path, merges_path)
    return tok

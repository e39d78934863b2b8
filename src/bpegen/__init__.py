"""bpegen: byte-level BPE tokenization and sampled text generation."""

from .byte_map import BYTE_MAP, ByteMap
from .config import GenerationConfig
from .generation import ForwardPass, GenerationResult, TextGenerator
from .pattern import TokenPattern, list_patterns, pretokenize
from .sampling import (
    SamplingStrategy,
    sample_greedy,
    sample_next_token,
    sample_temperature,
    sample_top_k,
    sample_top_p,
    select_strategy,
    softmax,
)
from .tokenizer import Tokenizer
from .vocab import MergeTable, Vocabulary, load_merges, load_vocab

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bpegen")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "BYTE_MAP",
    "ByteMap",
    "Vocabulary",
    "MergeTable",
    "load_vocab",
    "load_merges",
    "TokenPattern",
    "list_patterns",
    "pretokenize",
    "Tokenizer",
    "GenerationConfig",
    "SamplingStrategy",
    "softmax",
    "sample_greedy",
    "sample_temperature",
    "sample_top_k",
    "sample_top_p",
    "select_strategy",
    "sample_next_token",
    "ForwardPass",
    "GenerationResult",
    "TextGenerator",
]

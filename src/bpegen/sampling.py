"""
Sampling utilities for next-token generation.

The model produces logits (unnormalized scores) for each token id. Sampling
turns these logits into a probability distribution and draws ONE token.
Randomness always comes from an explicit ``numpy.random.Generator`` so runs
are reproducible under a fixed seed.
"""

import logging
from collections.abc import Callable
from enum import Enum
from typing import Final

import numpy as np
import numpy.typing as npt

from .config import GenerationConfig
from .types import Logits, Token

log = logging.getLogger(__name__)


class SamplingStrategy(str, Enum):
    """Token selection policies; exactly one applies per generation step."""

    GREEDY = "greedy"
    TOP_K = "top_k"
    TOP_P = "top_p"
    TEMPERATURE = "temperature"


def _as_logits(logits: npt.ArrayLike) -> Logits:
    arr = np.asarray(logits, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"logits must be 1D [vocab], got shape {arr.shape}")
    if arr.size == 0:
        raise ValueError("logits must not be empty")
    return arr


def softmax(logits: npt.ArrayLike, temperature: float = 1.0) -> Logits:
    """
    Convert logits to probabilities after scaling by ``temperature``.

    The maximum logit is subtracted first for numerical stability.
    """
    arr = _as_logits(logits)
    scaled = np.exp((arr - arr.max()) / temperature)
    return scaled / scaled.sum()


def sample_greedy(logits: npt.ArrayLike) -> Token:
    """Return the index of the largest logit; ties go to the lowest index."""
    return int(np.argmax(_as_logits(logits)))


def sample_temperature(
    logits: npt.ArrayLike, temperature: float, rng: np.random.Generator
) -> Token:
    """Draw one index from the full temperature-scaled distribution."""
    probs = softmax(logits, temperature)
    return int(rng.choice(probs.size, p=probs))


def sample_top_k(
    logits: npt.ArrayLike, k: int, temperature: float, rng: np.random.Generator
) -> Token:
    """
    Draw one index from the ``k`` highest logits.

    Candidates are ranked by a stable sort, so equal logits keep index order
    and ``k == 1`` always agrees with :func:`sample_greedy`.
    """
    arr = _as_logits(logits)
    k = max(1, min(int(k), arr.size))
    top_idx = np.argsort(-arr, kind="stable")[:k]
    probs = softmax(arr[top_idx], temperature)
    selected = int(rng.choice(k, p=probs))
    return int(top_idx[selected])


def sample_top_p(
    logits: npt.ArrayLike, p: float, temperature: float, rng: np.random.Generator
) -> Token:
    """
    Nucleus sampling: draw from the smallest high-probability prefix reaching ``p``.

    Tokens are taken in descending probability order until the running sum
    reaches or exceeds ``p``; the token that crosses the threshold is kept,
    so the nucleus is never empty. Nucleus probabilities are renormalized.
    """
    probs = softmax(logits, temperature)
    order = np.argsort(-probs, kind="stable")
    cumprobs = np.cumsum(probs[order])
    # first position where the running sum reaches p, inclusive
    nucleus_size = min(int(np.searchsorted(cumprobs, p, side="left")) + 1, probs.size)
    nucleus = order[:nucleus_size]
    nucleus_probs = probs[nucleus] / probs[nucleus].sum()
    selected = int(rng.choice(nucleus_size, p=nucleus_probs))
    return int(nucleus[selected])


def select_strategy(config: GenerationConfig, vocab_size: int) -> SamplingStrategy:
    """
    Pick the sampling policy for one step.

    Precedence: zero temperature is greedy; otherwise an active top-k
    (``0 < top_k < vocab_size``) wins and ``top_p`` is ignored; otherwise
    ``top_p < 1.0`` selects nucleus sampling; otherwise plain temperature.
    """
    if config.temperature == 0.0:
        return SamplingStrategy.GREEDY
    if 0 < config.top_k < vocab_size:
        return SamplingStrategy.TOP_K
    if config.top_p < 1.0:
        return SamplingStrategy.TOP_P
    return SamplingStrategy.TEMPERATURE


type _Sampler = Callable[[Logits, GenerationConfig, np.random.Generator], Token]

_SAMPLERS: Final[dict[SamplingStrategy, _Sampler]] = {
    SamplingStrategy.GREEDY: lambda logits, cfg, rng: sample_greedy(logits),
    SamplingStrategy.TOP_K: lambda logits, cfg, rng: sample_top_k(
        logits, cfg.top_k, cfg.temperature, rng
    ),
    SamplingStrategy.TOP_P: lambda logits, cfg, rng: sample_top_p(
        logits, cfg.top_p, cfg.temperature, rng
    ),
    SamplingStrategy.TEMPERATURE: lambda logits, cfg, rng: sample_temperature(
        logits, cfg.temperature, rng
    ),
}


def sample_next_token(
    logits: npt.ArrayLike,
    config: GenerationConfig,
    rng: np.random.Generator,
) -> Token:
    """
    Select the next token id from one position's logits.

    :param logits: Scores for every vocabulary entry, shape ``[vocab]``.
    :param config: Generation settings that decide the strategy.
    :param rng: Randomness source owned by the caller.
    :returns: The sampled vocabulary index.
    """
    arr = _as_logits(logits)
    strategy = select_strategy(config, arr.size)
    log.debug(f"sampling with {strategy.value} strategy")
    return _SAMPLERS[strategy](arr, config, rng)

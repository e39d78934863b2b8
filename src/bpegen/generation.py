"""
Autoregressive text generation over an external forward pass.
"""

import codecs
import logging
from collections.abc import Callable, Generator, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol

import numpy as np
import numpy.typing as npt

from ._decorators import measure_time
from .config import GenerationConfig
from .errors import GenerationError
from .sampling import sample_next_token
from .tokenizer import Tokenizer
from .types import Logits, Token

log = logging.getLogger(__name__)

type StopReason = Literal["max_length", "eos", "empty_logits", "cancelled"]


class ForwardPass(Protocol):
    """
    Neural forward pass consumed by the generator.

    ``forward`` takes the whole token sequence (length L) and returns a flat
    buffer of ``L * vocab_size`` scores, row ``i`` conditioned on the first
    ``i + 1`` tokens. An empty buffer signals failure.
    """

    @property
    def vocab_size(self) -> int: ...

    def forward(self, input_ids: Sequence[Token]) -> npt.ArrayLike: ...


@dataclass
class GenerationResult:
    """Outcome of one generation call."""

    token_ids: list[Token]
    prompt_length: int
    stop_reason: StopReason
    generated_ids: list[Token] = field(init=False)

    def __post_init__(self) -> None:
        self.generated_ids = self.token_ids[self.prompt_length :]


def last_token_logits(
    all_logits: npt.ArrayLike, seq_len: int, vocab_size: int
) -> Logits | None:
    """
    Slice the scores of the last position out of a flat ``[seq_len, vocab]`` buffer.

    Returns ``None`` for a degenerate buffer: empty, too short for
    ``seq_len * vocab_size`` values, sized for an empty vocabulary, or
    holding no usable scores.
    """
    arr = np.asarray(all_logits, dtype=np.float64).ravel()
    if arr.size == 0 or seq_len <= 0 or vocab_size <= 0 or arr.size < seq_len * vocab_size:
        return None
    offset = (seq_len - 1) * vocab_size
    last = arr[offset : offset + vocab_size]
    if np.isnan(last).any() or not np.isfinite(last.max()):
        return None
    return last


class TextGenerator:
    """
    Drives the encode -> forward -> sample -> append loop.

    Each instance owns its randomness source and the token sequence of the
    call in progress, so concurrent generations need separate instances.
    The tokenizer and forward pass may be shared.
    """

    def __init__(
        self,
        engine: ForwardPass,
        tokenizer: Tokenizer,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        self.engine = engine
        self.tokenizer = tokenizer
        # unseeded generators draw from OS entropy
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def generate(
        self,
        prompt: str,
        config: GenerationConfig | None = None,
        on_token: Callable[[str], None] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> str:
        """
        Generate a continuation of ``prompt`` and return prompt plus continuation.

        :param prompt: Text to continue.
        :param config: Generation settings, defaults to ``GenerationConfig()``.
        :param on_token: Called with each decoded fragment as tokens are accepted.
        :param should_stop: Checked before every step; returning ``True`` ends generation.
        :returns: Decoded text of the full token sequence.
        """
        result = self.generate_ids(prompt, config, on_token=on_token, should_stop=should_stop)
        return self.tokenizer.decode(result.token_ids)

    @measure_time
    def generate_ids(
        self,
        prompt: str,
        config: GenerationConfig | None = None,
        on_token: Callable[[str], None] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> GenerationResult:
        """Run generation and return the token ids with the reason it stopped."""
        config = config or GenerationConfig()
        token_ids = self._encode_prompt(prompt)
        prompt_length = len(token_ids)

        fragments = self._fragments(token_ids, config, should_stop)
        while True:
            try:
                fragment = next(fragments)
            except StopIteration as stop:
                reason: StopReason = stop.value
                break
            if on_token is not None:
                on_token(fragment)

        log.info(
            f"generated {len(token_ids) - prompt_length} tokens (stop reason: {reason})"
        )
        return GenerationResult(token_ids, prompt_length, reason)

    def stream(
        self,
        prompt: str,
        config: GenerationConfig | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> Iterator[str]:
        """
        Yield one decoded text fragment per accepted token, in order.

        Multi-byte characters split across tokens are held back until
        complete, so a fragment may be empty.
        """
        config = config or GenerationConfig()
        token_ids = self._encode_prompt(prompt)
        yield from self._fragments(token_ids, config, should_stop)

    def _encode_prompt(self, prompt: str) -> list[Token]:
        if not self.tokenizer.is_loaded:
            raise GenerationError("tokenizer must be loaded before generating")
        log.info("encoding prompt")
        token_ids = self.tokenizer.encode(prompt)
        if not token_ids:
            raise GenerationError("prompt encodes to an empty token sequence")
        log.info(f"prompt tokens: {len(token_ids)}")
        return token_ids

    def _fragments(
        self,
        token_ids: list[Token],
        config: GenerationConfig,
        should_stop: Callable[[], bool] | None,
    ) -> Generator[str, None, StopReason]:
        """Decode accepted tokens incrementally; returns the stop reason."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        steps = self._steps(token_ids, config, should_stop)
        while True:
            try:
                tok = next(steps)
            except StopIteration as stop:
                return stop.value
            yield decoder.decode(self.tokenizer.decode_bytes([tok]))

    def _steps(
        self,
        token_ids: list[Token],
        config: GenerationConfig,
        should_stop: Callable[[], bool] | None,
    ) -> Generator[Token, None, StopReason]:
        """
        Core decoding loop; appends to ``token_ids`` in place.

        Yields every accepted token and returns why the loop ended. The
        sampled EOS id ends the loop without being appended.
        """
        vocab_size = self.engine.vocab_size
        for step in range(config.max_length):
            if should_stop is not None and should_stop():
                log.info(f"generation cancelled at step {step}")
                return "cancelled"

            all_logits = self.engine.forward(token_ids)
            last = last_token_logits(all_logits, len(token_ids), vocab_size)
            if last is None:
                log.warning(f"empty or malformed logits returned at step {step}")
                return "empty_logits"

            next_tok = sample_next_token(last, config, self.rng)
            log.debug(f"step {step}: sampled token {next_tok}")

            if config.eos_token_id is not None and next_tok == config.eos_token_id:
                log.warning("reached eos token")
                return "eos"

            token_ids.append(next_tok)
            yield next_tok

        return "max_length"

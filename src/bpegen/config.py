"""Generation settings."""

import dataclasses
from dataclasses import dataclass
from typing import Final, Self

from .errors import ConfigError
from .types import Token

# GPT-2's <|endoftext|>
DEFAULT_EOS_TOKEN_ID: Final[Token] = 50256


@dataclass(frozen=True)
class GenerationConfig:
    """
    Immutable settings for one generation call.

    ``temperature == 0`` forces greedy decoding, ``top_k == 0`` disables top-k
    and ``top_p == 1.0`` disables nucleus sampling. ``eos_token_id=None``
    turns off early stopping.
    """

    max_length: int = 50
    temperature: float = 1.0
    top_k: int = 50
    top_p: float = 0.9
    eos_token_id: Token | None = DEFAULT_EOS_TOKEN_ID

    def __post_init__(self) -> None:
        if self.max_length < 0:
            raise ConfigError(
                "max_length must be non-negative", field="max_length", value=self.max_length
            )
        if self.temperature < 0:
            raise ConfigError(
                "temperature must be non-negative",
                field="temperature",
                value=self.temperature,
            )
        if self.top_k < 0:
            raise ConfigError("top_k must be non-negative", field="top_k", value=self.top_k)
        if not 0.0 < self.top_p <= 1.0:
            raise ConfigError("top_p must be in (0, 1]", field="top_p", value=self.top_p)

    @classmethod
    def greedy(cls, max_length: int = 50, eos_token_id: Token | None = DEFAULT_EOS_TOKEN_ID) -> Self:
        """Return a config that always picks the highest-scoring token."""
        return cls(
            max_length=max_length,
            temperature=0.0,
            top_k=0,
            top_p=1.0,
            eos_token_id=eos_token_id,
        )

    def replace(self, **changes: object) -> Self:
        """Return a validated copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)

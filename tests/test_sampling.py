"""Unit tests for sampling strategies and strategy selection."""

import typing
from collections import Counter

import numpy as np
import pytest

from bpegen import (
    GenerationConfig,
    SamplingStrategy,
    sample_greedy,
    sample_next_token,
    sample_temperature,
    sample_top_k,
    sample_top_p,
    select_strategy,
    softmax,
)
from bpegen.types import Logits


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


# softmax
# ---------------------------------------------------------------------------


def test_softmax_sums_to_one():
    """Softmax gives a probability distribution."""
    probs = softmax([1.0, 2.0, 3.0, -100.0])
    assert probs.sum() == pytest.approx(1.0)
    assert np.all(probs >= 0)


def test_softmax_temperature_scales_logits():
    """Temperature divides the logits before softmax."""
    np.testing.assert_allclose(softmax([0.0, np.log(2.0)]), [1 / 3, 2 / 3])
    # halving the temperature doubles the logits: weights 1 and 4
    np.testing.assert_allclose(softmax([0.0, np.log(2.0)], temperature=0.5), [0.2, 0.8])


def test_softmax_is_stable_for_large_logits():
    """Large logits do not overflow."""
    probs = softmax([1000.0, 1000.0])
    np.testing.assert_allclose(probs, [0.5, 0.5])


def test_softmax_rejects_bad_shapes():
    """Non 1-D or empty logits raise ValueError."""
    with pytest.raises(ValueError):
        softmax([[1.0, 2.0]])
    with pytest.raises(ValueError):
        softmax([])


# Greedy
# ---------------------------------------------------------------------------


def test_greedy_picks_largest_logit():
    """Greedy returns the argmax."""
    assert sample_greedy([1.0, 5.0, 2.0]) == 1


def test_greedy_ties_go_to_first_index():
    """Greedy ties resolve to the lowest index."""
    assert sample_greedy([3.0, 1.0, 3.0]) == 0


@pytest.mark.parametrize("top_k", [0, 2])
@pytest.mark.parametrize("top_p", [0.5, 1.0])
def test_zero_temperature_is_greedy_regardless_of_other_settings(rng, top_k, top_p):
    """Temperature 0 always samples greedily."""
    config = GenerationConfig(temperature=0.0, top_k=top_k, top_p=top_p)
    for _ in range(20):
        assert sample_next_token([1.0, 5.0, 2.0], config, rng) == 1


# Temperature
# ---------------------------------------------------------------------------


def test_temperature_sampling_covers_support(rng):
    """Uniform logits sample every index about equally."""
    counts = Counter(sample_temperature([0.0, 0.0, 0.0], 1.0, rng) for _ in range(3000))
    assert set(counts) == {0, 1, 2}
    for idx in range(3):
        assert counts[idx] / 3000 == pytest.approx(1 / 3, abs=0.05)


def test_low_temperature_concentrates_on_argmax(rng):
    """A tiny temperature always picks the argmax."""
    draws = {sample_temperature([1.0, 2.0, 1.5], 0.01, rng) for _ in range(100)}
    assert draws == {1}


# Top-k
# ---------------------------------------------------------------------------


def test_top_k_one_matches_greedy():
    """Top-k with k=1 agrees with greedy."""
    gen = np.random.default_rng(7)
    for _ in range(50):
        logits = gen.normal(size=20)
        assert sample_top_k(logits, 1, 1.0, gen) == sample_greedy(logits)


def test_top_k_one_with_ties_matches_greedy(rng):
    """Top-k with k=1 breaks ties like greedy."""
    assert sample_top_k([2.0, 9.0, 9.0, 1.0], 1, 1.0, rng) == 1


def test_top_k_stays_within_k_best(rng):
    """Top-k only samples from the k best logits."""
    logits = [0.0, 10.0, 9.5, -5.0, 9.0]
    draws = {sample_top_k(logits, 2, 1.0, rng) for _ in range(300)}
    assert draws == {1, 2}


def test_top_k_maps_back_to_vocabulary_indices(rng):
    """Top-k returns vocabulary indices, not sorted positions."""
    logits = [-1.0, -2.0, 3.0, -4.0, 2.9]
    draws = {sample_top_k(logits, 2, 5.0, rng) for _ in range(300)}
    assert draws == {2, 4}


# Top-p
# ---------------------------------------------------------------------------


def test_top_p_restricts_nucleus(rng):
    """Top-p drops tokens outside the nucleus and renormalizes."""
    logits = np.log([0.6, 0.3, 0.1])
    counts = Counter(sample_top_p(logits, 0.7, 1.0, rng) for _ in range(1000))
    assert 2 not in counts
    assert counts[0] > counts[1] > 0
    # renormalized nucleus: 0.6 / 0.9
    assert counts[0] / 1000 == pytest.approx(2 / 3, abs=0.06)


def test_top_p_keeps_the_crossing_token(rng):
    """The token that crosses p is part of the nucleus."""
    logits = np.log([0.5, 0.3, 0.2])
    # 0.5 < 0.55, so the second token is needed to reach p
    draws = {sample_top_p(logits, 0.55, 1.0, rng) for _ in range(300)}
    assert draws == {0, 1}


def test_top_p_stops_once_threshold_is_reached(rng):
    """No tokens are added after p is reached."""
    logits = np.log([0.6, 0.3, 0.1])
    draws = {sample_top_p(logits, 0.59, 1.0, rng) for _ in range(200)}
    assert draws == {0}


def test_tiny_top_p_is_argmax(rng):
    """A tiny p keeps only the most likely token."""
    logits = [0.1, 3.0, 2.9, 0.0]
    assert {sample_top_p(logits, 1e-6, 1.0, rng) for _ in range(50)} == {1}


def test_top_p_one_matches_temperature_distribution():
    """Top-p with p=1 samples like plain temperature."""
    logits = [0.0, 1.0, 2.0, 0.5]
    expected = softmax(logits)
    n = 4000
    rng_p = np.random.default_rng(0)
    rng_t = np.random.default_rng(1)
    nucleus = Counter(sample_top_p(logits, 1.0, 1.0, rng_p) for _ in range(n))
    full = Counter(sample_temperature(logits, 1.0, rng_t) for _ in range(n))
    for idx, prob in enumerate(expected):
        assert nucleus[idx] / n == pytest.approx(prob, abs=0.03)
        assert full[idx] / n == pytest.approx(prob, abs=0.03)


# Strategy selection
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "temperature, top_k, top_p, expected",
    [
        (0.0, 5, 0.5, SamplingStrategy.GREEDY),
        (0.7, 5, 0.5, SamplingStrategy.TOP_K),
        (0.7, 5, 1.0, SamplingStrategy.TOP_K),
        (0.7, 10, 0.5, SamplingStrategy.TOP_P),
        (0.7, 50, 0.5, SamplingStrategy.TOP_P),
        (0.7, 0, 0.5, SamplingStrategy.TOP_P),
        (0.7, 0, 1.0, SamplingStrategy.TEMPERATURE),
        (0.7, 10, 1.0, SamplingStrategy.TEMPERATURE),
    ],
)
def test_select_strategy_precedence(temperature, top_k, top_p, expected):
    """Strategy selection follows greedy, top-k, top-p, temperature order."""
    config = GenerationConfig(temperature=temperature, top_k=top_k, top_p=top_p)
    assert select_strategy(config, vocab_size=10) is expected


def test_top_k_ignores_top_p(rng):
    """When top-k applies, top-p is not combined with it."""
    # top_p alone would keep only index 0, top_k=2 keeps 0 and 1
    logits = np.log([0.55, 0.44, 0.01])
    config = GenerationConfig(temperature=1.0, top_k=2, top_p=0.1)
    draws = {sample_next_token(logits, config, rng) for _ in range(300)}
    assert draws == {0, 1}


def test_same_seed_same_draws():
    """Equal seeds give equal draws."""
    config = GenerationConfig(temperature=1.0, top_k=0, top_p=1.0)
    logits = [0.0, 0.1, 0.2, 0.3, 0.4]
    a = np.random.default_rng(99)
    b = np.random.default_rng(99)
    assert [sample_next_token(logits, config, a) for _ in range(30)] == [
        sample_next_token(logits, config, b) for _ in range(30)
    ]


def test_softmax_returns_logits_array():
    """softmax returns a 1-D float array matching the Logits alias."""
    assert typing.get_origin(Logits.__value__) is np.ndarray
    probs = softmax([0.0, 1.0])
    assert isinstance(probs, np.ndarray)
    assert np.issubdtype(probs.dtype, np.floating)
    assert probs.ndim == 1

"""
Core Byte Pair Encoding (BPE) merge operations.
"""

from .types import MergeRanks, Symbol, SymbolPair


def get_pairs(symbols: list[Symbol]) -> list[SymbolPair]:
    """Return adjacent symbol pairs in left-to-right order."""
    return list(zip(symbols, symbols[1:]))


def best_pair_index(symbols: list[Symbol], ranks: MergeRanks) -> int | None:
    """
    Return the position of the pair to merge next, or ``None`` if none applies.

    The pair with the lowest rank wins; among occurrences of equal rank the
    leftmost one is chosen.
    """
    best_idx: int | None = None
    best_rank: int | None = None
    for idx, pair in enumerate(get_pairs(symbols)):
        rank = ranks.get(pair)
        if rank is None:
            continue
        # strict comparison keeps the leftmost occurrence on ties
        if best_rank is None or rank < best_rank:
            best_idx, best_rank = idx, rank
    return best_idx


def bpe_merge(symbols: list[Symbol], ranks: MergeRanks) -> list[Symbol]:
    """
    Apply ranked merges to one pretoken's symbols until no rule applies.

    Each iteration merges exactly one occurrence, the lowest-ranked and then
    leftmost adjacent pair, into a single longer symbol. The sequence only
    ever shrinks; iteration stops when it reaches one symbol or no adjacent
    pair has a rank.

    :param symbols: Initial byte-mapped symbols of the pretoken.
    :param ranks: Pair -> rank lookup of the merge table.
    :return: Final sub-word symbols.
    """
    word = list(symbols)
    while len(word) > 1:
        idx = best_pair_index(word, ranks)
        if idx is None:
            break
        # merge in place, everything right of idx shifts left by one
        word[idx : idx + 2] = [word[idx] + word[idx + 1]]
    return word

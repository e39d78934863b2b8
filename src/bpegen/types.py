"""
Core types for tokenization and generation.
"""

import numpy as np
import numpy.typing as npt

type Token = int
type Symbol = str
type SymbolPair = tuple[Symbol, Symbol]
type MergeRanks = dict[SymbolPair, int]
# unnormalized scores, one per vocabulary entry
type Logits = npt.NDArray[np.floating]

"""
ONNX Runtime forward pass for decoder-only language models.

Requires the optional ``onnxruntime`` dependency (``pip install bpegen[onnx]``).
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Final, TYPE_CHECKING

import numpy as np

from .errors import ModelLoadError
from .types import Logits, Token

if TYPE_CHECKING:
    import onnxruntime as ort

# GPT-2 default vocab size
DEFAULT_VOCAB_SIZE: Final[int] = 50257

log = logging.getLogger(__name__)


class OnnxForwardPass:
    """
    Run a full-sequence forward pass through an exported ONNX decoder.

    Inputs fed per call: ``input_ids`` and an all-ones ``attention_mask`` of
    shape ``[1, seq_len]``, plus ``use_cache_branch=False`` when the graph
    declares it (merged decoder exports). The first output is returned as a
    flat ``seq_len * vocab_size`` buffer.
    """

    def __init__(self, model_path: str | Path, vocab_size: int = DEFAULT_VOCAB_SIZE) -> None:
        """
        Load the model into an inference session.

        :raises ModelLoadError: If the file is missing or the session cannot be created.
        """
        import onnxruntime as ort

        path = Path(model_path)
        if not path.exists():
            raise ModelLoadError("model filepath does not exist", path=str(path))

        log.info(f"loading model from {path}")
        opts = ort.SessionOptions()
        opts.intra_op_num_threads = 1
        opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_BASIC
        try:
            self.session: "ort.InferenceSession" = ort.InferenceSession(
                str(path), sess_options=opts, providers=["CPUExecutionProvider"]
            )
        except Exception as e:
            raise ModelLoadError(f"failed to create inference session: {e}", path=str(path)) from e

        self.input_names: list[str] = [i.name for i in self.session.get_inputs()]
        self.output_names: list[str] = [o.name for o in self.session.get_outputs()]
        self._vocab_size = vocab_size
        log.info(f"model inputs: {self.input_names}")
        log.info(f"model outputs: {self.output_names}")
        log.info("model loaded successfully")

    @property
    def vocab_size(self) -> int:
        return self._vocab_size

    def forward(self, input_ids: Sequence[Token]) -> Logits:
        """
        Score every position of ``input_ids``.

        Inference errors are logged and reported as an empty buffer.
        """
        ids = np.asarray(input_ids, dtype=np.int64).reshape(1, -1)
        feeds: dict[str, np.ndarray] = {"input_ids": ids}
        if "attention_mask" in self.input_names:
            feeds["attention_mask"] = np.ones_like(ids)
        if "use_cache_branch" in self.input_names:
            feeds["use_cache_branch"] = np.array([False])
        try:
            outputs = self.session.run(self.output_names, feeds)
        except Exception as e:
            log.error(f"inference error: {e}")
            return np.empty(0, dtype=np.float32)
        return np.asarray(outputs[0], dtype=np.float32).ravel()

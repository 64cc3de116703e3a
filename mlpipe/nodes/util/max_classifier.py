# mlpipe/nodes/util/max_classifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from mlpipe.pipeline.transformer import RecordTransformer


@dataclass(frozen=True)
class MaxClassifier(RecordTransformer):
    """score vector → argmax 下标（ties 取最小下标）。"""

    def transform_record(self, record: Any) -> int:
        scores = np.asarray(record, dtype=np.float64)
        if scores.ndim != 1 or scores.size == 0:
            raise ValueError(f"MaxClassifier expects a non-empty 1-D vector, got shape {scores.shape}")
        return int(np.argmax(scores))

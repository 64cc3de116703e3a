# mlpipe/nodes/util/vector_scaler.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from mlpipe.pipeline.transformer import RecordTransformer


@dataclass(frozen=True)
class VectorScaler(RecordTransformer):
    """x → factor * x（float64 ndarray）。factor 必须非负，保持 count 语义。"""

    factor: float = 1.0

    def __post_init__(self):
        if not np.isfinite(self.factor) or self.factor < 0:
            raise ValueError(f"factor must be finite and >= 0, got {self.factor}")

    def transform_record(self, record: Any) -> np.ndarray:
        return self.factor * np.asarray(record, dtype=np.float64)

# mlpipe/workflows/naive_bayes_workflow.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from mlpipe.config.app_config import AppConfig
from mlpipe.dataset.context import ExecutionContext
from mlpipe.dataset.partitioned import PartitionedDataset
from mlpipe.nodes.learning.naive_bayes import NaiveBayesEstimator
from mlpipe.nodes.util.cacher import Cacher
from mlpipe.nodes.util.max_classifier import MaxClassifier
from mlpipe.nodes.util.vector_scaler import VectorScaler
from mlpipe.pipeline.transformer import Transformer
from mlpipe.utils.errors import UserInputError
from mlpipe.utils.logger import logs


@dataclass(frozen=True)
class WorkflowResult:
    """
    WorkflowResult（FROZEN）

    - pipeline: featurizer then model then MaxClassifier
    - accuracy 只是 driver 端的简单比对，不是评估框架
    """
    pipeline: Transformer
    train_accuracy: float
    test_accuracy: float | None = None


def load_labeled_csv(path: Path, label_column: str = "label") -> Tuple[List[np.ndarray], List[int]]:
    """CSV → (特征向量列表, 整数标签列表)。除 label_column 外的列都是特征。"""
    if not path.exists():
        raise UserInputError(f"file not found: {path}")

    df = pd.read_csv(path)
    if label_column not in df.columns:
        raise UserInputError(
            f"label column {label_column!r} not in {path.name}: {list(df.columns)}"
        )

    try:
        features = df.drop(columns=[label_column]).to_numpy(dtype=np.float64)
    except ValueError as e:
        raise UserInputError(f"non-numeric feature column in {path.name}: {e}") from e

    # 先按 float 读，拒绝缺失 / 非整数标签，再转 int（astype(int) 会静默截断 1.7 → 1）
    raw = pd.to_numeric(df[label_column], errors="coerce").to_numpy(dtype=np.float64)
    bad = ~np.isfinite(raw) | (raw != np.floor(raw))
    if bad.any():
        row = int(np.flatnonzero(bad)[0])
        raise UserInputError(
            f"label column {label_column!r} in {path.name} must hold integer class ids; "
            f"row {row} has {df[label_column].iloc[row]!r}"
        )
    return list(features), raw.astype(np.int64).tolist()


def _accuracy(predicted: Sequence[int], actual: Sequence[int]) -> float:
    if not actual:
        return 0.0
    hits = sum(1 for p, a in zip(predicted, actual) if p == a)
    return hits / len(actual)


@logs.catch(msg="naive bayes workflow failed")
def run_naive_bayes(
        ctx: ExecutionContext,
        cfg: AppConfig,
        train: Tuple[Sequence, Sequence[int]],
        test: Tuple[Sequence, Sequence[int]] | None = None,
        num_partitions: int | None = None,
) -> WorkflowResult:
    """
    训练 + 评估（driver）

    featurizer = VectorScaler then Cacher
    predictor  = featurizer then NaiveBayesModel then MaxClassifier
    """
    train_x, train_y = train
    train_features: PartitionedDataset = ctx.parallelize(train_x, num_partitions, name="train_features")
    train_labels: PartitionedDataset = ctx.parallelize(train_y, num_partitions, name="train_labels")

    featurizer = VectorScaler(1.0).then(Cacher())
    estimator = NaiveBayesEstimator.from_config(cfg.model)

    model = featurizer.then(estimator).fit(train_features, train_labels)
    predictor = model.then(MaxClassifier())

    train_accuracy = _accuracy(predictor(train_features).collect(), list(train_y))
    logs.info(f"[NaiveBayesWorkflow] training accuracy: {train_accuracy:.4f}")

    test_accuracy = None
    if test is not None:
        test_x, test_y = test
        test_features = ctx.parallelize(test_x, num_partitions, name="test_features")
        test_accuracy = _accuracy(predictor(test_features).collect(), list(test_y))
        logs.info(f"[NaiveBayesWorkflow] test accuracy: {test_accuracy:.4f}")

    return WorkflowResult(
        pipeline=predictor,
        train_accuracy=train_accuracy,
        test_accuracy=test_accuracy,
    )

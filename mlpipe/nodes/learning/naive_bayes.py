# mlpipe/nodes/learning/naive_bayes.py
"""
Multinomial Naive Bayes（FINAL）

NaiveBayesEstimator.fit:
  一次聚合：每个 partition 计算充分统计量 (N_c, S_c[d])，driver 端求和，
  再做 Laplace 平滑得到 log prior / log conditional。

NaiveBayesModel.apply:
  两阶段 broadcast：
    1. 每次 apply 调用分发一次 pi / theta
    2. 每个 partition 只读一次 handle.value，复用于该 partition 所有记录
  输出未归一化的 log posterior：pi + theta · x
"""
from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Iterator, Optional, Sequence, Tuple

import numpy as np

from mlpipe.config.model_config import NaiveBayesConfig
from mlpipe.dataset.broadcast import Broadcast
from mlpipe.dataset.partitioned import PartitionedDataset
from mlpipe.pipeline.transformer import LabelEstimator, Transformer
from mlpipe.utils.errors import (
    DegenerateClassError,
    DimensionalityError,
    EmptyDatasetError,
    InvalidFeatureError,
    LabelRangeError,
    ModelLayoutError,
    PipelineError,
)
from mlpipe.utils.logger import logs


def _as_vector(x: Any, expected: Optional[int] = None) -> np.ndarray:
    v = np.asarray(x, dtype=np.float64)
    if v.ndim != 1:
        raise DimensionalityError(expected if expected is not None else -1, v.size)
    if expected is not None and v.shape[0] != expected:
        raise DimensionalityError(expected, v.shape[0])
    return v


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=np.float64, copy=True)
    a.setflags(write=False)
    return a


# ============================================================
# Model
# ============================================================
def _log_posteriors(
        pi_bc: Broadcast, theta_bc: Broadcast, it: Iterator[Any]
) -> Iterator[np.ndarray]:
    # 每个 partition 只取一次
    pi = pi_bc.value
    theta = theta_bc.value
    dim = theta.shape[1]
    for x in it:
        yield pi + theta @ _as_vector(x, dim)


@dataclass(frozen=True, eq=False)
class NaiveBayesModel(Transformer):
    """
    A multinomial Naive Bayes model mapping feature vectors to vectors of
    unnormalized class log-posteriors.

    Args:
        labels: class id of each supplied row; must be exactly {0, ..., C-1}
            in any order.
        pi: log class priors, row i belongs to class labels[i].
        theta: C x D log class-conditional feature probabilities, row i
            belongs to class labels[i].

    After construction rows are reindexed so that row c is class c, and
    ``labels`` is ``(0, ..., C-1)``. The stored arrays are read-only.

    Raises:
        DegenerateClassError: a class id below max(labels) is missing.
        ModelLayoutError: duplicate or negative ids, ragged theta, or
            pi / theta / labels length mismatch.
    """

    labels: Tuple[int, ...]
    pi: np.ndarray
    theta: np.ndarray = field(repr=False)

    def __post_init__(self):
        labels, pi, theta = _reindex(self.labels, self.pi, self.theta)
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "pi", pi)
        object.__setattr__(self, "theta", theta)

    @property
    def num_classes(self) -> int:
        return self.theta.shape[0]

    @property
    def num_features(self) -> int:
        return self.theta.shape[1]

    def apply(self, data: PartitionedDataset) -> PartitionedDataset:
        ctx = data.context
        pi_bc = ctx.broadcast(self.pi, name="naive_bayes.pi")
        theta_bc = ctx.broadcast(self.theta, name="naive_bayes.theta")
        return data.map_partitions(
            partial(_log_posteriors, pi_bc, theta_bc),
            name="NaiveBayesModel.apply",
        )

    def predict_record(self, x: Any) -> np.ndarray:
        """单条记录的 log posterior（driver 本地，不经过 broadcast）。"""
        return self.pi + self.theta @ _as_vector(x, self.num_features)


def _reindex(
        labels: Sequence[Any], pi: Any, theta: Any
) -> Tuple[Tuple[int, ...], np.ndarray, np.ndarray]:
    """显式的 class id → dense row 映射；拒绝缺口与重复。"""
    ids = [_as_class_id(label) for label in labels]
    rows = [np.asarray(r, dtype=np.float64) for r in theta]
    pi = np.asarray(pi, dtype=np.float64).reshape(-1)

    c = len(ids)
    if c == 0:
        raise ModelLayoutError("model needs at least one class")
    if len(pi) != c or len(rows) != c:
        raise ModelLayoutError(
            f"labels/pi/theta length mismatch: {c}/{len(pi)}/{len(rows)}"
        )
    dims = {r.shape for r in rows}
    if len(dims) != 1 or rows[0].ndim != 1:
        raise ModelLayoutError(f"theta rows must share one 1-D shape, got {sorted(dims)}")

    row_of: dict[int, int] = {}
    for i, cid in enumerate(ids):
        if cid < 0:
            raise ModelLayoutError(f"class id {cid} is negative")
        if cid in row_of:
            raise ModelLayoutError(f"duplicate class id {cid}")
        row_of[cid] = i
    # dense 索引空间是 [0, max(id)]，缺口即没有统计量的类
    for cid in range(max(ids) + 1):
        if cid not in row_of:
            raise DegenerateClassError(cid, "missing from model labels")

    order = [row_of[cid] for cid in range(c)]
    dense_theta = np.vstack([rows[i] for i in order])
    dense_pi = pi[order]

    return tuple(range(c)), _readonly(dense_pi), _readonly(dense_theta)


def _as_class_id(label: Any) -> int:
    if isinstance(label, (bool, np.bool_)):
        raise ModelLayoutError(f"class id must be an integer, got {label!r}")
    if isinstance(label, numbers.Integral):
        return int(label)
    if isinstance(label, numbers.Real) and float(label).is_integer():
        return int(label)
    raise ModelLayoutError(f"class id must be an integer, got {label!r}")


# ============================================================
# Estimator
# ============================================================
def _label_index(label: Any, num_classes: int) -> int:
    if isinstance(label, (bool, np.bool_)):
        raise LabelRangeError(label, num_classes)
    if isinstance(label, numbers.Integral):
        idx = int(label)
    elif isinstance(label, numbers.Real) and float(label).is_integer():
        idx = int(label)
    else:
        raise LabelRangeError(label, num_classes)
    if idx < 0 or idx >= num_classes:
        raise LabelRangeError(label, num_classes)
    return idx


def _partition_statistics(
        num_classes: int, it: Iterator[Tuple[Any, Any]]
) -> Iterator[Tuple[np.ndarray, Optional[np.ndarray]]]:
    """一个 partition 的充分统计量：(counts[C], sums[C, D] 或 None)。"""
    counts = np.zeros(num_classes, dtype=np.float64)
    sums: Optional[np.ndarray] = None

    for label, x in it:
        c = _label_index(label, num_classes)
        v = _as_vector(x, None if sums is None else sums.shape[1])
        if not np.all(np.isfinite(v)) or np.any(v < 0):
            raise InvalidFeatureError(
                f"multinomial naive bayes requires finite nonnegative features, "
                f"got min={v.min()} for label {c}"
            )
        if sums is None:
            if v.shape[0] == 0:
                raise DimensionalityError(
                    1, 0, "feature vectors must have at least one feature, got length 0"
                )
            sums = np.zeros((num_classes, v.shape[0]), dtype=np.float64)
        counts[c] += 1
        sums[c] += v

    yield counts, sums


@dataclass(frozen=True)
class NaiveBayesEstimator(LabelEstimator):
    """
    Learns a multinomial Naive Bayes model with additive (Laplace) smoothing.

    Args:
        num_classes: declared number of classes C; labels must lie in [0, C).
        lambda_: additive smoothing constant, >= 0.
    """

    num_classes: int
    lambda_: float = 1.0

    def __post_init__(self):
        if isinstance(self.num_classes, bool) or not isinstance(self.num_classes, numbers.Integral):
            raise ValueError(f"num_classes must be an int, got {self.num_classes!r}")
        if self.num_classes < 1:
            raise ValueError(f"num_classes must be >= 1, got {self.num_classes}")
        if not np.isfinite(self.lambda_) or self.lambda_ < 0:
            raise ValueError(f"lambda_ must be finite and >= 0, got {self.lambda_}")

    @classmethod
    def from_config(cls, cfg: NaiveBayesConfig) -> "NaiveBayesEstimator":
        return cls(num_classes=cfg.num_classes, lambda_=cfg.lambda_)

    def fit(self, data: PartitionedDataset, labels: PartitionedDataset) -> NaiveBayesModel:
        try:
            counts, sums = self._aggregate(data, labels)
            pi, theta = self._estimate(counts, sums)
        except PipelineError as e:
            logs.error(f"[NaiveBayesEstimator] fit failed: {type(e).__name__}: {e}")
            raise

        logs.info(
            f"[NaiveBayesEstimator] fitted classes={self.num_classes} "
            f"features={theta.shape[1]} examples={int(counts.sum())} lambda={self.lambda_}"
        )
        return NaiveBayesModel(labels=tuple(range(self.num_classes)), pi=pi, theta=theta)

    # --------------------------------------------------
    # internal
    # --------------------------------------------------
    def _aggregate(
            self, data: PartitionedDataset, labels: PartitionedDataset
    ) -> Tuple[np.ndarray, np.ndarray]:
        stats = labels.zip(data).map_partitions(
            partial(_partition_statistics, self.num_classes),
            name="NaiveBayesEstimator.fit",
        ).collect()

        counts = np.zeros(self.num_classes, dtype=np.float64)
        sums: Optional[np.ndarray] = None
        for part_counts, part_sums in stats:
            counts += part_counts
            if part_sums is None:
                continue
            if sums is None:
                sums = part_sums.copy()
            elif part_sums.shape != sums.shape:
                raise DimensionalityError(sums.shape[1], part_sums.shape[1])
            else:
                sums += part_sums

        if sums is None:
            raise EmptyDatasetError("cannot fit naive bayes on an empty dataset")
        return counts, sums

    def _estimate(self, counts: np.ndarray, sums: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        for c in range(self.num_classes):
            if counts[c] == 0:
                raise DegenerateClassError(c)

        n = counts.sum()
        dim = sums.shape[1]
        row_totals = sums.sum(axis=1) + dim * self.lambda_
        for c in range(self.num_classes):
            if row_totals[c] <= 0:
                raise DegenerateClassError(c, "no feature mass and lambda is 0")

        pi = np.log(counts) - np.log(n)
        # lambda == 0 时未出现的特征为 -inf
        with np.errstate(divide="ignore"):
            theta = np.log(sums + self.lambda_) - np.log(row_totals)[:, None]
        return pi, theta

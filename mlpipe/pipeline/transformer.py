# mlpipe/pipeline/transformer.py
"""
Pipeline stage abstraction（FINAL）

两种能力形态（封闭集合）：
  - Transformer      : apply(dataset) -> dataset
  - LabelEstimator   : fit(features, labels) -> Transformer

组合：
  compose(a, b) / a.then(b)，在上述两种形态上统一定义：

    Transformer    then Transformer    -> TransformerChain（扁平化，保证结合律）
    LabelEstimator then Transformer    -> EstimatorChain
    Transformer    then LabelEstimator -> FeaturizedEstimator
    LabelEstimator then LabelEstimator -> TypeError

设计铁律：
  - Stage 是不可变值对象（frozen dataclass），不持有训练数据
  - apply 必须引用透明：同样的输入内容 → 同样的输出内容
  - Stage 不负责调度 / 物化，全部委托给 PartitionedDataset
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Tuple, TypeVar, Union

from mlpipe.dataset.partitioned import PartitionedDataset

In = TypeVar("In")
Out = TypeVar("Out")


class Transformer(ABC, Generic[In, Out]):
    """纯函数 stage：PartitionedDataset[In] → PartitionedDataset[Out]。"""

    @abstractmethod
    def apply(self, data: PartitionedDataset) -> PartitionedDataset:
        ...

    def __call__(self, data: PartitionedDataset) -> PartitionedDataset:
        return self.apply(data)

    def then(self, other: "Stage") -> "Stage":
        return compose(self, other)

    @property
    def stage_name(self) -> str:
        return self.__class__.__name__


class RecordTransformer(Transformer[In, Out]):
    """
    逐条记录的 Transformer。

    子类只实现 transform_record；实例会随 partition 函数 pickle 到 worker，
    因此子类必须是模块级、可 pickle 的不可变对象。
    """

    @abstractmethod
    def transform_record(self, record: In) -> Out:
        ...

    def apply(self, data: PartitionedDataset) -> PartitionedDataset:
        return data.map(self.transform_record, name=self.stage_name)


class LabelEstimator(ABC, Generic[In, Out]):
    """有监督 fitting stage：fit(features, labels) → Transformer。"""

    @abstractmethod
    def fit(self, data: PartitionedDataset, labels: PartitionedDataset) -> Transformer:
        ...

    def then(self, other: "Stage") -> "Stage":
        return compose(self, other)

    @property
    def stage_name(self) -> str:
        return self.__class__.__name__


Stage = Union[Transformer, LabelEstimator]


# ============================================================
# Composite stages
# ============================================================
@dataclass(frozen=True)
class TransformerChain(Transformer):
    stages: Tuple[Transformer, ...]

    def apply(self, data: PartitionedDataset) -> PartitionedDataset:
        for stage in self.stages:
            data = stage.apply(data)
        return data

    @property
    def stage_name(self) -> str:
        return " then ".join(s.stage_name for s in self.stages)


@dataclass(frozen=True)
class EstimatorChain(LabelEstimator):
    """estimator.fit(...) 的结果再接 suffix。"""

    estimator: LabelEstimator
    suffix: Transformer

    def fit(self, data: PartitionedDataset, labels: PartitionedDataset) -> Transformer:
        return compose(self.estimator.fit(data, labels), self.suffix)


@dataclass(frozen=True)
class FeaturizedEstimator(LabelEstimator):
    """先 featurizer 再 fit；输出的 Transformer 以 featurizer 开头。"""

    featurizer: Transformer
    estimator: LabelEstimator

    def fit(self, data: PartitionedDataset, labels: PartitionedDataset) -> Transformer:
        model = self.estimator.fit(self.featurizer.apply(data), labels)
        return compose(self.featurizer, model)


# ============================================================
# compose
# ============================================================
def _flatten(t: Transformer) -> Tuple[Transformer, ...]:
    if isinstance(t, TransformerChain):
        return t.stages
    return (t,)


def compose(first: Any, second: Any) -> Stage:
    """
    顺序组合：compose(A, B).apply(x) == B.apply(A.apply(x))

    结合律：Transformer 链总是扁平化为同一个 TransformerChain，
    estimator 组合通过把 Transformer 推入内部来归一化。
    """
    if isinstance(first, Transformer) and isinstance(second, Transformer):
        return TransformerChain(_flatten(first) + _flatten(second))

    if isinstance(first, LabelEstimator) and isinstance(second, Transformer):
        if isinstance(first, EstimatorChain):
            return EstimatorChain(first.estimator, compose(first.suffix, second))
        return EstimatorChain(first, second)

    if isinstance(first, Transformer) and isinstance(second, LabelEstimator):
        if isinstance(second, FeaturizedEstimator):
            return FeaturizedEstimator(compose(first, second.featurizer), second.estimator)
        return FeaturizedEstimator(first, second)

    if isinstance(first, LabelEstimator) and isinstance(second, LabelEstimator):
        raise TypeError(
            f"cannot chain two estimators: {first.stage_name} then {second.stage_name}"
        )

    raise TypeError(
        f"compose expects Transformer or LabelEstimator, "
        f"got {type(first).__name__} and {type(second).__name__}"
    )

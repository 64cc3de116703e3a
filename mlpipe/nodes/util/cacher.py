# mlpipe/nodes/util/cacher.py
from __future__ import annotations

from dataclasses import dataclass

from mlpipe.dataset.partitioned import PartitionedDataset
from mlpipe.pipeline.transformer import Transformer


@dataclass(frozen=True)
class Cacher(Transformer):
    """
    物化节点：第一次 action 计算并缓存，之后复用。
    输出内容与输入一致，仅改变计算次数。
    """

    def apply(self, data: PartitionedDataset) -> PartitionedDataset:
        return data.cache()

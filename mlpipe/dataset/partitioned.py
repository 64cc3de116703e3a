# mlpipe/dataset/partitioned.py
from __future__ import annotations

from functools import partial
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from mlpipe.utils.errors import AlignmentError

if TYPE_CHECKING:
    from mlpipe.dataset.context import ExecutionContext

T = TypeVar("T")
U = TypeVar("U")

Partitions = List[List[Any]]


def split_contiguous(records: Sequence[Any], num_partitions: int) -> Partitions:
    """
    连续切分，保持记录顺序；前 (n % p) 个 partition 多 1 条。
    num_partitions > len(records) 时允许空 partition。
    """
    if num_partitions < 1:
        raise ValueError(f"num_partitions must be >= 1, got {num_partitions}")

    n = len(records)
    size, extra = divmod(n, num_partitions)
    out: Partitions = []
    start = 0
    for i in range(num_partitions):
        end = start + size + (1 if i < extra else 0)
        out.append(list(records[start:end]))
        start = end
    return out


def _map_records(fn: Callable[[Any], Any], it: Iterator[Any]) -> Iterator[Any]:
    for record in it:
        yield fn(record)


class PartitionedDataset(Generic[T]):
    """
    PartitionedDataset（lazy lineage）

    语义：
    - 有序 partition 列表，partition 内有序，partition 间无顺序语义
    - transformation（map / map_partitions / zip）只记录 lineage，不计算
    - action（collect / count / glom）触发计算
    - 未 cache 的 dataset 每次 action 都重新计算
    - cache() 返回新节点：第一次 action 物化，之后复用

    Dataset 只存在于 driver，不会被 pickle 到 worker。
    """

    def __init__(
            self,
            context: "ExecutionContext",
            compute: Callable[[], Partitions],
            *,
            name: str = "dataset",
            cache: bool = False,
    ):
        self._context = context
        self._compute = compute
        self.name = name
        self._cache_enabled = cache
        self._cached: Optional[Partitions] = None

    # --------------------------------------------------
    # identity
    # --------------------------------------------------
    @property
    def context(self) -> "ExecutionContext":
        return self._context

    @property
    def is_cached(self) -> bool:
        return self._cache_enabled

    @property
    def num_partitions(self) -> int:
        return len(self._materialize())

    def __repr__(self) -> str:
        return f"PartitionedDataset(name={self.name!r}, cached={self._cache_enabled})"

    # --------------------------------------------------
    # transformations（lazy）
    # --------------------------------------------------
    def map_partitions(
            self,
            fn: Callable[[Iterator[T]], Iterable[U]],
            name: str | None = None,
    ) -> "PartitionedDataset[U]":
        """
        fn 在每个 partition 上执行一次，输入为该 partition 的迭代器。
        fn 必须可 pickle（模块级函数或 functools.partial）。
        """
        job_name = name or getattr(fn, "__name__", "map_partitions")

        def compute() -> Partitions:
            return self._context.run_job(self._materialize(), fn, name=job_name)

        return PartitionedDataset(self._context, compute, name=job_name)

    def map(self, fn: Callable[[T], U], name: str | None = None) -> "PartitionedDataset[U]":
        job_name = name or f"map({getattr(fn, '__name__', type(fn).__name__)})"
        return self.map_partitions(partial(_map_records, fn), name=job_name)

    def zip(self, other: "PartitionedDataset[U]") -> "PartitionedDataset[tuple[T, U]]":
        """
        位置配对：partition 数与每个 partition 的记录数必须一致，
        否则 AlignmentError。
        """
        if other.context is not self._context:
            raise ValueError("cannot zip datasets from different ExecutionContexts")

        def compute() -> Partitions:
            left = self._materialize()
            right = other._materialize()

            if len(left) != len(right):
                raise AlignmentError(len(left), len(right), what="partition counts")

            left_sizes = [len(p) for p in left]
            right_sizes = [len(p) for p in right]
            if left_sizes != right_sizes:
                raise AlignmentError(left_sizes, right_sizes)

            return [list(zip(lp, rp)) for lp, rp in zip(left, right)]

        return PartitionedDataset(
            self._context, compute, name=f"zip({self.name},{other.name})"
        )

    def repartition(self, num_partitions: int) -> "PartitionedDataset[T]":
        """按当前全局顺序重新连续切分。"""

        def compute() -> Partitions:
            records = [r for part in self._materialize() for r in part]
            return split_contiguous(records, num_partitions)

        return PartitionedDataset(
            self._context, compute, name=f"repartition({self.name},{num_partitions})"
        )

    def cache(self) -> "PartitionedDataset[T]":
        if self._cache_enabled:
            return self
        return PartitionedDataset(
            self._context, self._materialize, name=f"cache({self.name})", cache=True
        )

    def unpersist(self) -> None:
        self._cached = None

    # --------------------------------------------------
    # actions
    # --------------------------------------------------
    def glom(self) -> Partitions:
        return [list(p) for p in self._materialize()]

    def collect(self) -> List[T]:
        return [r for part in self._materialize() for r in part]

    def count(self) -> int:
        return sum(self.partition_sizes())

    def partition_sizes(self) -> List[int]:
        return [len(p) for p in self._materialize()]

    # --------------------------------------------------
    # internal
    # --------------------------------------------------
    def _materialize(self) -> Partitions:
        if self._cached is not None:
            return self._cached

        parts = self._compute()
        if self._cache_enabled:
            self._cached = parts
        return parts

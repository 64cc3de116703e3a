# mlpipe/dataset/context.py
from __future__ import annotations

from functools import partial
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Sequence

from mlpipe.config.execution_config import ExecutionConfig
from mlpipe.dataset.broadcast import (
    Broadcast,
    freeze,
    install_broadcasts,
    new_broadcast_id,
    register_local,
    release_local,
)
from mlpipe.dataset.partitioned import Partitions, PartitionedDataset, split_contiguous
from mlpipe.observability.instrumentation import Instrumentation, NoOpInstrumentation
from mlpipe.pipeline.parallel.executor import ParallelExecutor
from mlpipe.pipeline.parallel.types import ParallelKind
from mlpipe.utils.logger import logs


def _run_partition(fn: Callable[[Iterator[Any]], Iterable[Any]], records: list) -> list:
    """worker 端：一个 partition 的完整计算（必须物化后再返回）。"""
    return list(fn(iter(records)))


def _init_worker(log_settings: dict, broadcasts: Dict[int, Any]) -> None:
    """pool initializer：采用 driver 的日志配置，再装载 broadcast。"""
    logs.adopt(log_settings)
    install_broadcasts(broadcasts)


class ExecutionContext:
    """
    ExecutionContext = 本地 partitioned substrate 的 driver 入口

    职责：
    - parallelize：构造 PartitionedDataset
    - broadcast：登记只读值，job 启动时每个 worker 进程分发一次
    - run_job：通过 ParallelExecutor 在每个 partition 上执行函数

    不负责：
    - 调度策略 / 容错 / 重试（由 ParallelExecutor fail-fast 语义决定）

    broadcast 生命周期：
    - 每个 job 都把当前全部 live broadcast 交给 worker initializer
    - handle 只在 destroy() 或 stop() 时释放；多次 apply 会累积，
      长期存活的 context 应在结果 collect 之后 destroy 不再需要的 handle
    """

    def __init__(
            self,
            cfg: ExecutionConfig | None = None,
            inst: Instrumentation | NoOpInstrumentation | None = None,
    ):
        self.cfg = cfg if cfg is not None else ExecutionConfig()
        self.inst = inst if inst is not None else NoOpInstrumentation()
        self._broadcasts: Dict[int, Any] = {}
        self._jobs = 0

    # --------------------------------------------------
    # dataset construction
    # --------------------------------------------------
    def parallelize(
            self,
            records: Iterable[Any],
            num_partitions: Optional[int] = None,
            name: str = "parallelize",
    ) -> PartitionedDataset:
        n = num_partitions if num_partitions is not None else self.cfg.default_parallelism
        parts = split_contiguous(list(records), n)
        return PartitionedDataset(self, lambda: parts, name=name)

    def from_partitions(
            self,
            partitions: Sequence[Iterable[Any]],
            name: str = "from_partitions",
    ) -> PartitionedDataset:
        parts = [list(p) for p in partitions]
        return PartitionedDataset(self, lambda: parts, name=name)

    # --------------------------------------------------
    # broadcast
    # --------------------------------------------------
    def broadcast(self, value: Any, name: str = "") -> Broadcast:
        bid = new_broadcast_id()
        value = freeze(value)
        self._broadcasts[bid] = value
        register_local(bid, value)
        logs.debug(f"[ExecutionContext] broadcast id={bid} name={name}")
        return Broadcast(bid, name=name, context=self)

    def _release_broadcast(self, bid: int) -> None:
        self._broadcasts.pop(bid, None)

    @property
    def live_broadcasts(self) -> int:
        return len(self._broadcasts)

    # --------------------------------------------------
    # job execution
    # --------------------------------------------------
    @property
    def jobs_run(self) -> int:
        return self._jobs

    def run_job(
            self,
            partitions: Partitions,
            fn: Callable[[Iterator[Any]], Iterable[Any]],
            name: str = "job",
    ) -> Partitions:
        self._jobs += 1
        with self.inst.timer(f"job:{name}"):
            return ParallelExecutor.run(
                kind=ParallelKind.PARTITION,
                items=partitions,
                handler=partial(_run_partition, fn),
                max_workers=self.cfg.max_workers,
                initializer=_init_worker,
                initargs=(logs.settings(), dict(self._broadcasts)),
            )

    # --------------------------------------------------
    # lifecycle
    # --------------------------------------------------
    def stop(self) -> None:
        for bid in list(self._broadcasts):
            release_local(bid)
        self._broadcasts.clear()
        logs.debug(f"[ExecutionContext] stopped after {self._jobs} jobs")

    def __enter__(self) -> "ExecutionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

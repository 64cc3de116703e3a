# mlpipe/pipeline/parallel/executor.py
from __future__ import annotations

import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Any, Callable, Iterable, Sequence

from mlpipe.pipeline.parallel.types import ParallelKind
from mlpipe.utils.logger import logs


class ParallelExecutor:
    """
    ParallelExecutor

    目标：
    - 统一的 ProcessPoolExecutor 封装（partition = 最小调度单位）
    - 结果按 items 输入顺序返回（与完成顺序无关）
    - fail-fast：第一个 handler 异常原样抛给调用方，剩余任务取消
    - initializer / initargs：每个 worker 进程只执行一次（broadcast 分发）

    约束：
    - handler / initializer 必须可 pickle（模块级函数或 functools.partial）
    """

    @staticmethod
    def run(
            *,
            kind: ParallelKind,
            items: Iterable[Any],
            handler: Callable[[Any], Any],
            max_workers: int | None = None,
            initializer: Callable[..., None] | None = None,
            initargs: Sequence[Any] = (),
    ) -> list[Any]:
        items = list(items)
        if not items:
            logs.debug("[ParallelExecutor] no items to process")
            return []

        workers = ParallelExecutor._resolve_workers(items, max_workers)

        logs.debug(
            f"[ParallelExecutor] start "
            f"kind={kind.value} total={len(items)} workers={workers}"
        )

        if workers == 1:
            return ParallelExecutor._run_sequential(
                items, handler, initializer, initargs
            )
        return ParallelExecutor._run_parallel(
            items, handler, workers, initializer, initargs
        )

    # ---------------- internal ----------------

    @staticmethod
    def _resolve_workers(items: list[Any], max_workers: int | None) -> int:
        cpu = os.cpu_count() or 1
        if max_workers is None:
            return min(cpu, len(items))
        return max(1, min(max_workers, len(items)))

    @staticmethod
    def _run_sequential(
            items: list[Any],
            handler: Callable[[Any], Any],
            initializer: Callable[..., None] | None,
            initargs: Sequence[Any],
    ) -> list[Any]:
        # driver 进程即 worker
        if initializer is not None:
            initializer(*initargs)
        return [handler(item) for item in items]

    @staticmethod
    def _run_parallel(
            items: list[Any],
            handler: Callable[[Any], Any],
            workers: int,
            initializer: Callable[..., None] | None,
            initargs: Sequence[Any],
    ) -> list[Any]:
        results: list[Any] = [None] * len(items)

        with ProcessPoolExecutor(
                max_workers=workers,
                initializer=initializer,
                initargs=tuple(initargs),
        ) as pool:
            futures = {
                pool.submit(handler, item): idx
                for idx, item in enumerate(items)
            }
            for fut in as_completed(futures):
                idx = futures[fut]
                try:
                    results[idx] = fut.result()
                except Exception as e:
                    logs.error(
                        f"[ParallelExecutor] item #{idx} failed: "
                        f"{type(e).__name__}: {e}"
                    )
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise

        return results

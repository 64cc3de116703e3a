#!filepath: mlpipe/observability/instrumentation.py
from __future__ import annotations

from dataclasses import dataclass
from contextlib import contextmanager
from collections import OrderedDict
from typing import Dict

from mlpipe.observability.timer import Timer
from mlpipe.observability.timeline_reporter import TimelineReporter


@dataclass
class Instrumentation:
    """
    Instrumentation（Leaf-only accounting + Parent scope）。

    设计铁律：
    1. Timeline 只记录【叶子节点】（record=True），同名叶子累计
    2. fit / apply 等父级 timer 仅作为时间语义边界（record=False）
    3. record=False 的 timer 不产生任何副作用
    4. Instrumentation 本身不在热路径打日志
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)

        # timeline: OrderedDict[leaf_name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()
        self.counts: Dict[str, int] = {}

    # ---------------------------------------------------------
    # Context Manager Timer（唯一入口）
    # ---------------------------------------------------------
    def timer(self, name: str, *, record: bool = True):
        """
        Context-manager timer.

        Parameters
        ----------
        name : str
            计时名称，例如 "job:NaiveBayesModel.apply"
        record : bool
            - True  : 叶子节点，累计到 timeline
            - False : 父级 scope，仅定义 wall-time（不产生副作用）
        """
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                elapsed = inst._timer.end(name)

                if record:
                    inst.timeline[name] = inst.timeline.get(name, 0.0) + elapsed
                    inst.counts[name] = inst.counts.get(name, 0) + 1

        return _ctx()

    # ---------------------------------------------------------
    # Timeline 输出（冷路径）
    # ---------------------------------------------------------
    def generate_timeline_report(self, label: str):
        TimelineReporter(self.timeline, self.counts, label).print()


# -------------------------------------------------------------
# No-op Instrumentation（禁用 observability）
# -------------------------------------------------------------
class NoOpInstrumentation:
    """Instrumentation disabled 时使用。"""

    def __init__(self):
        self.timeline: Dict[str, float] = {}

    def timer(self, name: str, *, record: bool = True):
        return _NoOpTimer()

    def generate_timeline_report(self, label: str):
        pass


class _NoOpTimer:
    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass

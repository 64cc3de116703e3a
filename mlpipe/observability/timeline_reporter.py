#!filepath: mlpipe/observability/timeline_reporter.py
from typing import Dict

from mlpipe.utils.logger import logs


class TimelineReporter:
    """
    Job Timeline 报告：
    - leaf name → (累计耗时, 调用次数)
    """

    def __init__(self, timeline: Dict[str, float], counts: Dict[str, int], label: str):
        self.timeline = timeline
        self.counts = counts
        self.label = label

    def print(self):
        logs.info(f"[Timeline] ===== Job timeline for {self.label} =====")

        total = 0.0
        for name, sec in self.timeline.items():
            n = self.counts.get(name, 1)
            logs.info(f"[Timeline] {str(name):<30} x{n:<4} {sec:>8.3f}s")
            total += sec

        logs.info(f"[Timeline] Total{'':<32} {total:>8.3f}s")
        logs.info("[Timeline] ===========================================")

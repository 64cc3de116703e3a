#!filepath: mlpipe/observability/timer.py
import time
from typing import Dict, List


class Timer:
    """
    高精度计时器
    - start(name)
    - end(name) → 返回耗时秒数
    - 同名嵌套（递归 job）按栈匹配
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._start: Dict[str, List[float]] = {}

    def start(self, name: str):
        if not self.enabled:
            return
        self._start.setdefault(name, []).append(time.perf_counter())

    def end(self, name: str) -> float:
        if not self.enabled:
            return 0.0
        stack = self._start.get(name)
        if not stack:
            return 0.0
        elapsed = time.perf_counter() - stack.pop()
        if not stack:
            del self._start[name]
        return elapsed

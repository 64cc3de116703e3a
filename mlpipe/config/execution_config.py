# mlpipe/config/execution_config.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ExecutionConfig(BaseModel):
    """
    ExecutionConfig（本地 partitioned substrate）

    - max_workers=None → min(cpu, #partitions)
    - max_workers=1    → 顺序执行（driver 进程内）
    """

    max_workers: Optional[int] = Field(default=None, ge=1)
    default_parallelism: int = Field(default=2, ge=1)

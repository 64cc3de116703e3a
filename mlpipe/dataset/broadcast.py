# mlpipe/dataset/broadcast.py
"""
Broadcast primitive（一次分发，worker 本地缓存，只读）

Protocol:
  1. driver: ExecutionContext.broadcast(value) → Broadcast handle
     value 登记到 context 与本进程缓存
  2. job 启动: 所有存活 broadcast 通过 pool initializer 每个 worker 进程
     只传输一次，写入该进程的 _LOCAL_VALUES
  3. partition 内: handle.value 查本进程缓存；handle 本身 pickle 时只带 id
"""
from __future__ import annotations

import itertools
from typing import Any, Dict, Generic, Optional, TypeVar

import numpy as np

from mlpipe.utils.errors import BroadcastError

T = TypeVar("T")

# per-process cache: broadcast id → value
_LOCAL_VALUES: Dict[int, Any] = {}

_NEXT_ID = itertools.count()


def freeze(value: Any) -> Any:
    """可写 numpy 数组复制并置为只读，其余对象原样返回。"""
    if isinstance(value, np.ndarray) and value.flags.writeable:
        value = np.array(value, copy=True)
        value.setflags(write=False)
    return value


def install_broadcasts(payload: Dict[int, Any]) -> None:
    """Pool initializer: 每个 worker 进程执行一次。"""
    for bid, value in payload.items():
        _LOCAL_VALUES[bid] = freeze(value)


def new_broadcast_id() -> int:
    return next(_NEXT_ID)


def register_local(bid: int, value: Any) -> None:
    _LOCAL_VALUES[bid] = value


def release_local(bid: int) -> None:
    _LOCAL_VALUES.pop(bid, None)


class Broadcast(Generic[T]):
    """
    只读分发句柄。

    pickle 只携带 (id, name)，不携带 value；value 由 worker 的本地缓存提供。
    """

    def __init__(self, bid: int, name: str = "", context: Optional[Any] = None):
        self.id = bid
        self.name = name
        self._context = context

    @property
    def value(self) -> T:
        try:
            return _LOCAL_VALUES[self.id]
        except KeyError:
            raise BroadcastError(self.id) from None

    def destroy(self) -> None:
        """释放 driver 端登记；之后启动的 job 不再分发该值。"""
        release_local(self.id)
        if self._context is not None:
            self._context._release_broadcast(self.id)

    def __reduce__(self):
        return Broadcast, (self.id, self.name)

    def __repr__(self) -> str:
        return f"Broadcast(id={self.id}, name={self.name!r})"

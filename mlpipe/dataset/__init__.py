from .broadcast import Broadcast
from .context import ExecutionContext
from .partitioned import PartitionedDataset

__all__ = ["Broadcast", "ExecutionContext", "PartitionedDataset"]

# tests/dataset/test_partitioned_dataset.py
from __future__ import annotations

import operator

import pytest

from mlpipe.dataset.partitioned import split_contiguous
from mlpipe.utils.errors import AlignmentError


def test_split_contiguous_keeps_order_and_balances():
    parts = split_contiguous(list(range(7)), 3)

    assert parts == [[0, 1, 2], [3, 4], [5, 6]]


def test_split_contiguous_allows_empty_partitions():
    parts = split_contiguous([1, 2], 4)

    assert parts == [[1], [2], [], []]


def test_split_contiguous_rejects_zero_partitions():
    with pytest.raises(ValueError):
        split_contiguous([1], 0)


def test_parallelize_uses_default_parallelism(ctx):
    ds = ctx.parallelize(range(5))

    assert ds.num_partitions == 2
    assert ds.partition_sizes() == [3, 2]
    assert ds.collect() == [0, 1, 2, 3, 4]
    assert ds.count() == 5


def test_map_is_lazy_until_action(ctx):
    ds = ctx.parallelize([-1, -2, 3], num_partitions=3).map(abs)
    assert ctx.jobs_run == 0

    assert ds.collect() == [1, 2, 3]
    assert ctx.jobs_run == 1


def test_uncached_dataset_recomputes_every_action(ctx):
    ds = ctx.parallelize([1, 2, 3]).map(operator.neg)

    ds.collect()
    ds.count()

    assert ctx.jobs_run == 2


def test_cache_materializes_once(ctx):
    ds = ctx.parallelize([1, 2, 3]).map(operator.neg).cache()

    assert ds.is_cached
    assert ds.collect() == [-1, -2, -3]
    assert ds.count() == 3
    assert ds.glom() == [[-1, -2], [-3]]
    assert ctx.jobs_run == 1

    # cache 返回新节点，不修改原 dataset
    assert ds.cache() is ds


def test_unpersist_forces_recompute(ctx):
    ds = ctx.parallelize([1, 2]).map(abs).cache()
    ds.collect()
    ds.unpersist()
    ds.collect()

    assert ctx.jobs_run == 2


def test_zip_pairs_positionally(ctx):
    left = ctx.parallelize(["a", "b", "c"])
    right = ctx.parallelize([1, 2, 3])

    assert left.zip(right).glom() == [[("a", 1), ("b", 2)], [("c", 3)]]


def test_zip_rejects_partition_size_mismatch(ctx):
    left = ctx.from_partitions([[1, 2], [3]])
    right = ctx.from_partitions([[1], [2, 3]])

    with pytest.raises(AlignmentError) as exc:
        left.zip(right).collect()

    assert exc.value.left == [2, 1]
    assert exc.value.right == [1, 2]


def test_zip_rejects_partition_count_mismatch(ctx):
    left = ctx.parallelize([1, 2, 3], num_partitions=3)
    right = ctx.parallelize([1, 2, 3], num_partitions=1)

    with pytest.raises(AlignmentError, match="partition counts"):
        left.zip(right).collect()


def test_zip_rejects_other_context(ctx):
    from mlpipe.dataset.context import ExecutionContext

    other = ExecutionContext()
    with pytest.raises(ValueError):
        ctx.parallelize([1]).zip(other.parallelize([1]))


def test_repartition_preserves_global_order(ctx):
    ds = ctx.parallelize(range(6), num_partitions=2).repartition(3)

    assert ds.glom() == [[0, 1], [2, 3], [4, 5]]


def test_map_partitions_runs_in_worker_processes(parallel_ctx):
    ds = parallel_ctx.parallelize(range(10), num_partitions=4).map(operator.neg)

    assert ds.collect() == [-i for i in range(10)]

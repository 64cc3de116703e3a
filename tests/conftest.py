# tests/conftest.py
from __future__ import annotations

import multiprocessing

import numpy as np
import pytest
from loguru import logger

from mlpipe.config.execution_config import ExecutionConfig
from mlpipe.dataset.context import ExecutionContext


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


@pytest.fixture(scope="session", autouse=True)
def _set_start_method():
    multiprocessing.set_start_method("spawn", force=True)


@pytest.fixture
def ctx():
    """顺序执行（driver 进程内），2 个 partition。"""
    with ExecutionContext(ExecutionConfig(max_workers=1, default_parallelism=2)) as c:
        yield c


@pytest.fixture
def parallel_ctx():
    """真实 ProcessPoolExecutor，2 个 worker。"""
    with ExecutionContext(ExecutionConfig(max_workers=2, default_parallelism=2)) as c:
        yield c


@pytest.fixture
def toy_training():
    """
    2 类 / 2 个 binary 特征：
      class 0: [1,0] [1,0]
      class 1: [0,1] [0,1]
    """
    features = [
        np.array([1.0, 0.0]),
        np.array([1.0, 0.0]),
        np.array([0.0, 1.0]),
        np.array([0.0, 1.0]),
    ]
    labels = [0, 0, 1, 1]
    return features, labels


@pytest.fixture
def count_corpus():
    """3 类 / 4 个 count 特征，带一个全零特征列。"""
    rng = np.random.default_rng(7)
    centers = np.array(
        [
            [8.0, 1.0, 1.0, 0.0],
            [1.0, 8.0, 1.0, 0.0],
            [1.0, 1.0, 8.0, 0.0],
        ]
    )
    features, labels = [], []
    for i in range(60):
        c = i % 3
        features.append(rng.poisson(centers[c]).astype(np.float64))
        labels.append(c)
    return features, labels

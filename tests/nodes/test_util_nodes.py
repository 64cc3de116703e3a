# tests/nodes/test_util_nodes.py
from __future__ import annotations

import numpy as np
import pytest

from mlpipe.nodes.util.cacher import Cacher
from mlpipe.nodes.util.max_classifier import MaxClassifier
from mlpipe.nodes.util.vector_scaler import VectorScaler


def test_max_classifier_argmax_and_ties(ctx):
    data = ctx.parallelize([[0.1, 0.9], [-1.0, -3.0], [2.0, 2.0]])

    assert MaxClassifier()(data).collect() == [1, 0, 0]


@pytest.mark.parametrize("bad", [[], [[1.0, 2.0]]])
def test_max_classifier_rejects_non_vectors(bad):
    with pytest.raises(ValueError):
        MaxClassifier().transform_record(bad)


def test_vector_scaler(ctx):
    out = VectorScaler(3.0)(ctx.parallelize([[1, 2]], 1)).collect()

    assert out[0].dtype == np.float64
    assert np.allclose(out[0], [3.0, 6.0])


def test_vector_scaler_rejects_negative_factor():
    with pytest.raises(ValueError):
        VectorScaler(-1.0)


def test_cacher_materializes_once(ctx):
    featurized = VectorScaler(2.0).then(Cacher())(ctx.parallelize([[1.0], [2.0]]))

    first = featurized.collect()
    second = featurized.collect()

    assert ctx.jobs_run == 1
    assert first[1] is second[1]

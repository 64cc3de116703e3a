from .learning.naive_bayes import NaiveBayesEstimator, NaiveBayesModel
from .util.cacher import Cacher
from .util.max_classifier import MaxClassifier
from .util.vector_scaler import VectorScaler

__all__ = [
    "NaiveBayesEstimator",
    "NaiveBayesModel",
    "Cacher",
    "MaxClassifier",
    "VectorScaler",
]

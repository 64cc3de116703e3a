#!filepath: mlpipe/__init__.py

__version__ = "0.1.0"

from .utils.logger import Logging, logs, init_logging
from .config.app_config import AppConfig
from .dataset.context import ExecutionContext
from .pipeline.transformer import LabelEstimator, Transformer, compose
from .nodes.learning.naive_bayes import NaiveBayesEstimator, NaiveBayesModel

__all__ = [
    "logs", "Logging", "init_logging",
    "AppConfig",
    "ExecutionContext",
    "Transformer", "LabelEstimator", "compose",
    "NaiveBayesEstimator", "NaiveBayesModel",
]

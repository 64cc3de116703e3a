# mlpipe/utils/errors.py
"""
Error taxonomy (FINAL)

Rules:
- Every error raised by fit / apply derives from PipelineError
- Errors carry the offending values as attributes
- Errors must survive a process boundary unchanged (see __reduce__),
  partition functions run inside ProcessPoolExecutor workers
"""
from __future__ import annotations


class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided input (paths, columns, etc).
    Should NOT print traceback.
    """


class PipelineError(RuntimeError):
    """Base class of every fit / apply failure."""


class BroadcastError(PipelineError):
    """Broadcast value is not available in the current process."""

    def __init__(self, broadcast_id: int):
        self.broadcast_id = broadcast_id
        super().__init__(
            f"broadcast {broadcast_id} is not available in this process "
            f"(destroyed, or created after the job started)"
        )

    def __reduce__(self):
        return type(self), (self.broadcast_id,)


class DimensionalityError(PipelineError, ValueError):
    """Feature vector length disagrees with the expected dimensionality D."""

    def __init__(self, expected: int, actual: int, reason: str | None = None):
        self.expected = expected
        self.actual = actual
        self.reason = reason
        super().__init__(
            reason or f"feature dimensionality mismatch: expected {expected}, got {actual}"
        )

    def __reduce__(self):
        return type(self), (self.expected, self.actual, self.reason)


class AlignmentError(PipelineError, ValueError):
    """Paired collections are not positionally aligned."""

    def __init__(self, left, right, what: str = "partition sizes"):
        self.left = left
        self.right = right
        self.what = what
        super().__init__(f"cannot zip collections: {what} differ ({left} vs {right})")

    def __reduce__(self):
        return type(self), (self.left, self.right, self.what)


class DegenerateClassError(PipelineError, ValueError):
    """A declared class has no training statistics."""

    def __init__(self, class_index: int, reason: str = "no training examples"):
        self.class_index = class_index
        self.reason = reason
        super().__init__(f"class {class_index} is degenerate: {reason}")

    def __reduce__(self):
        return type(self), (self.class_index, self.reason)


class LabelRangeError(PipelineError, ValueError):
    """Label outside [0, num_classes): num_classes underspecified upstream."""

    def __init__(self, label, num_classes: int):
        self.label = label
        self.num_classes = num_classes
        super().__init__(
            f"label {label!r} outside [0, {num_classes}); "
            f"num_classes underspecifies the observed labels"
        )

    def __reduce__(self):
        return type(self), (self.label, self.num_classes)


class InvalidFeatureError(PipelineError, ValueError):
    """Multinomial Naive Bayes requires finite, nonnegative feature values."""


class EmptyDatasetError(PipelineError, ValueError):
    """Fit called on a collection without records."""


class ModelLayoutError(PipelineError, ValueError):
    """Model parameters do not form a valid C x D layout."""

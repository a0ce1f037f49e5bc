# dtforest/exceptions.py
"""Exceptions raised by dtforest estimators."""


class ConfigurationError(ValueError):
    """An invalid hyperparameter value was given to a setter or constructor."""


class InsufficientDataError(ValueError):
    """The training set is smaller than the minimum number of samples."""


class FitFailure(RuntimeError):
    """Recursive tree construction did not produce a usable tree."""


class ConcurrencyInterruptedError(FitFailure):
    """Waiting for the worker tasks of a tree build was interrupted."""


class ModelMismatchError(ValueError):
    """A query does not have the feature layout the model was trained on."""

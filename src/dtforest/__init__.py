# dtforest/__init__.py
"""
dtforest: decision trees with post pruning and extremely randomized forests
(scikit-learn style).

Exports:
    - DecisionTreeClassifier
    - DecisionTreeRegressor
    - ERTreesClassifier
    - ERTreesRegressor
"""
import logging

from .dataset import DataPoint, DataSet
from .exceptions import (ConcurrencyInterruptedError, ConfigurationError, FitFailure,
                         InsufficientDataError, ModelMismatchError)
from .forest import ERTreesClassifier, ERTreesRegressor
from .importance import MDI, ImportanceByUses
from .pruning import PruningMethod
from .regressor import DecisionTreeRegressor
from .stats import OnlineStatistics
from .tree import DecisionTreeClassifier

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DecisionTreeClassifier", "DecisionTreeRegressor", "ERTreesClassifier", "ERTreesRegressor",
    "PruningMethod", "DataSet", "DataPoint", "MDI", "ImportanceByUses", "OnlineStatistics",
    "ConfigurationError", "InsufficientDataError", "FitFailure", "ConcurrencyInterruptedError",
    "ModelMismatchError",
]
__version__ = "0.1.0"

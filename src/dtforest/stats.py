# -*- coding: utf-8 -*-
"""
dtforest.stats
==============

Small statistics helpers shared by the pruning and forest modules:

* :class:`OnlineStatistics` keeps a streaming (weighted) mean and variance
  using Welford's update, so per-feature importances can be accumulated tree
  by tree without storing every value.
* :func:`inv_beta_inc_reg` and :func:`binomial_upper_bound` give the exact
  one-sided binomial confidence bound used by error-based pruning.
"""
from __future__ import annotations

import math

import numpy as np
from scipy.special import betaincinv


def inv_beta_inc_reg(p: float, a: float, b: float) -> float:
    """Inverse of the regularized incomplete beta function ``I_x(a, b) = p``.

    Parameters
    ----------
    p : float
        Target probability in [0, 1].
    a, b : float
        Positive shape parameters.

    Returns
    -------
    float
        The ``x`` in [0, 1] such that ``I_x(a, b) == p``.
    """
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"p must be in [0, 1], not {p}")
    if a <= 0 or b <= 0:
        raise ValueError(f"shape parameters must be positive, got a={a}, b={b}")
    return float(betaincinv(a, b, p))


def binomial_upper_bound(n: float, alpha: float, errors: float) -> float:
    """Pessimistic upper bound on the number of errors out of ``n`` trials.

    Computes ``n * (1 - I^-1(alpha; n - errors + eps, errors + 1))``, the
    upper limit of a one-sided binomial confidence interval at level
    ``alpha`` scaled back to an error count.
    """
    if n <= 0:
        return 0.0
    return n * (1.0 - inv_beta_inc_reg(alpha, n - errors + 1e-9, errors + 1.0))


class OnlineStatistics:
    """Weighted running mean / variance (Welford / West update).

    Examples
    --------
    >>> s = OnlineStatistics()
    >>> for v in (1.0, 2.0, 3.0):
    ...     s.add(v)
    >>> s.mean, s.variance
    (2.0, 1.0)
    """

    def __init__(self):
        self.n = 0.0
        self._mean = 0.0
        self._m2 = 0.0
        self.min = math.inf
        self.max = -math.inf

    def add(self, x: float, weight: float = 1.0) -> None:
        if weight <= 0:
            return
        x = float(x)
        new_n = self.n + weight
        delta = x - self._mean
        r = delta * weight / new_n
        self._mean += r
        self._m2 += self.n * delta * r
        self.n = new_n
        self.min = min(self.min, x)
        self.max = max(self.max, x)

    @property
    def mean(self) -> float:
        return self._mean if self.n > 0 else float("nan")

    @property
    def variance(self) -> float:
        """Unbiased (frequency weighted) sample variance."""
        if self.n <= 1:
            return 0.0 if self.n > 0 else float("nan")
        return self._m2 / (self.n - 1)

    @property
    def standard_deviation(self) -> float:
        return float(np.sqrt(self.variance))

    def __repr__(self) -> str:
        return (f"OnlineStatistics(n={self.n:g}, mean={self.mean:.6g}, "
                f"std={self.standard_deviation:.6g})")

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from loadguard._exceptions import InvalidInputError

ArrayLike = Union[float, "np.ndarray"]


def _breakpoints(params: Sequence[float], n: int, kind: str) -> tuple[float, ...]:
    if len(params) != n:
        raise InvalidInputError(f"{kind} needs {n} breakpoints; got {len(params)}.")
    points = tuple(float(p) for p in params)
    if any(a > b for a, b in zip(points, points[1:])):
        raise InvalidInputError(f"{kind} breakpoints must be non-decreasing; got {points}.")
    return points


def _finish(x: ArrayLike, y: np.ndarray) -> ArrayLike:
    return float(y.flat[0]) if np.ndim(x) == 0 else y


def trimf(x: ArrayLike, abc: Sequence[float]) -> ArrayLike:
    """
    Triangular membership with feet ``a``, ``c`` and peak ``b``.

    Scalars in, scalar out; arrays in, array out.  Coincident breakpoints form
    a vertical edge: the peak still evaluates to 1 and no segment divides by
    its (zero) width.
    """
    a, b, c = _breakpoints(abc, 3, "trimf")
    xx = np.atleast_1d(np.asarray(x, dtype=np.float64))
    y = np.zeros_like(xx)

    if b > a:
        rising = (xx > a) & (xx < b)
        y[rising] = (xx[rising] - a) / (b - a)
    if c > b:
        falling = (xx > b) & (xx < c)
        y[falling] = (c - xx[falling]) / (c - b)
    y[xx == b] = 1.0
    return _finish(x, y)


def trapmf(x: ArrayLike, abcd: Sequence[float]) -> ArrayLike:
    """
    Trapezoidal membership rising on ``[a, b]``, flat on ``[b, c]``, falling
    on ``[c, d]``.

    ``a == b`` makes the set open to the left (everything up to ``b`` is 1)
    and ``c == d`` open to the right (everything from ``c`` on is 1).
    """
    a, b, c, d = _breakpoints(abcd, 4, "trapmf")
    xx = np.atleast_1d(np.asarray(x, dtype=np.float64))
    y = np.zeros_like(xx)

    if b > a:
        rising = (xx > a) & (xx < b)
        y[rising] = (xx[rising] - a) / (b - a)
    if d > c:
        falling = (xx > c) & (xx < d)
        y[falling] = (d - xx[falling]) / (d - c)
    y[(xx >= b) & (xx <= c)] = 1.0

    if a == b:
        y[xx <= b] = 1.0
    if c == d:
        y[xx >= c] = 1.0
    return _finish(x, y)

from typing import Sequence, Union

import numpy as np

ArrayLike = Union[Sequence[float], np.ndarray]


def normalize_to_sum(values: ArrayLike, target: float = 1.0) -> np.ndarray:
    """Rescale non-negative values so they sum to ``target``.

    A zero (or empty) total yields all zeros instead of NaN.
    """
    arr = np.asarray(values, dtype=np.float64)
    if np.any(arr < 0):
        raise ValueError("normalize_to_sum expects non-negative values")
    total = float(arr.sum())
    if total <= 0.0:
        return np.zeros_like(arr)
    return (arr / total) * float(target)


def max_absolute_delta(old: ArrayLike, new: ArrayLike) -> float:
    a = np.asarray(old, dtype=np.float64)
    b = np.asarray(new, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Shape mismatch: {a.shape} vs {b.shape}")
    if a.size == 0:
        return 0.0
    return float(np.max(np.abs(b - a)))

from dataclasses import dataclass
from typing import Optional, Sequence
import numpy as np

PIVOT_EPS = 1e-10


@dataclass(frozen=True)
class LinearSolution:
    """Outcome of ``solve_linear_system``; ``x`` is None when singular."""
    x: Optional[np.ndarray]

    @property
    def solved(self) -> bool:
        return self.x is not None

    @property
    def singular(self) -> bool:
        return self.x is None


SINGULAR = LinearSolution(None)


def solve_linear_system(matrix: Sequence[Sequence[float]], vector: Sequence[float]) -> LinearSolution:
    """Solve ``A x = b`` by Gaussian elimination with partial pivoting.

    At each step the row with the largest absolute value in the pivot column
    is swapped into place before eliminating below it; back substitution
    then runs from the last row upward. A pivot smaller than ``PIVOT_EPS``
    at any point marks the system singular. The inputs are not modified.
    """
    b = np.asarray(vector, dtype=float)
    n = b.shape[0]
    a = np.asarray(matrix, dtype=float)
    if a.shape != (n, n):
        raise ValueError(f"Expected a {n}x{n} matrix, got shape {a.shape}")
    aug = np.hstack([a, b.reshape(n, 1)])

    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(aug[i:, i])))
        if pivot_row != i:
            aug[[i, pivot_row]] = aug[[pivot_row, i]]
        pivot = aug[i, i]
        if abs(pivot) < PIVOT_EPS:
            return SINGULAR
        for k in range(i + 1, n):
            factor = aug[k, i] / pivot
            aug[k, i:] -= factor * aug[i, i:]
            aug[k, i] = 0.0

    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        if abs(aug[i, i]) < PIVOT_EPS:
            return SINGULAR
        x[i] = (aug[i, n] - aug[i, i + 1:n] @ x[i + 1:]) / aug[i, i]
    return LinearSolution(x)

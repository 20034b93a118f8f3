"""Containers for field values over positions and frequencies or times.

Layout
------
    field : (X, W, F)  X positions (rows), W frequencies or times (columns),
                       F field components (1 for scalar fields)
    x     : (X, D)     listener positions
    omega : (W,)       angular frequencies   (FrequencySimulationResult)
    t     : (W,)       times                 (TimeSimulationResult)
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(eq=False)
class SimulationResult:
    """Field through space (rows) and frequency or time (columns).

    ``field`` may be given as (X, W) for scalar fields or (X, W, F);
    it is always stored as (X, W, F).
    """

    field: np.ndarray
    x: np.ndarray

    def _columns(self) -> np.ndarray:
        raise NotImplementedError

    def _validate(self, dtype) -> None:
        field = np.asarray(self.field, dtype=dtype)
        if field.ndim == 2:
            field = field[:, :, None]
        elif field.ndim != 3:
            raise ValueError(f"field must have 2 or 3 dimensions, got shape {field.shape}")

        x = np.atleast_2d(np.asarray(self.x, dtype=float))  # (X, D)
        columns = self._columns()

        if field.shape[0] != x.shape[0]:
            raise ValueError(f"field has {field.shape[0]} rows but there are {x.shape[0]} positions")
        if field.shape[1] != len(columns):
            raise ValueError(
                f"field has {field.shape[1]} columns but there are {len(columns)} "
                f"{self._column_name()}"
            )
        self.field = field
        self.x = x

    def _column_name(self) -> str:
        return "columns"

    @property
    def size(self) -> Tuple[int, int]:
        """(number of positions, number of frequencies or times)."""
        return self.field.shape[0], self.field.shape[1]

    @property
    def field_dim(self) -> int:
        return self.field.shape[2]

    @property
    def dim(self) -> int:
        return self.x.shape[1]

    def get_field(
        self,
        i: Optional[int] = None,
        j: Optional[int] = None,
    ) -> Union[np.ndarray, complex, float]:
        """Whole field table, or the entry at position ``i`` and column ``j``.

        Scalar fields (field_dim == 1) are unwrapped: the table becomes
        (X, W) and single entries become numbers.
        """
        if (i is None) != (j is None):
            raise ValueError("Give both a position index and a column index, or neither")

        if i is None:
            return self.field[:, :, 0] if self.field_dim == 1 else self.field
        value = self.field[i, j]
        return value[0] if self.field_dim == 1 else value


@dataclass(eq=False)
class FrequencySimulationResult(SimulationResult):
    """Complex field over positions and angular frequencies."""

    omega: np.ndarray

    def __post_init__(self):
        self.omega = np.atleast_1d(np.asarray(self.omega, dtype=float))
        self._validate(np.complex128)

    def _columns(self) -> np.ndarray:
        return self.omega

    def _column_name(self) -> str:
        return "frequencies"


@dataclass(eq=False)
class TimeSimulationResult(SimulationResult):
    """Real field over positions and times."""

    t: np.ndarray

    def __post_init__(self):
        self.t = np.atleast_1d(np.asarray(self.t, dtype=float))
        self._validate(float)

    def _columns(self) -> np.ndarray:
        return self.t

    def _column_name(self) -> str:
        return "times"


# ---------------------------------------------------------------------------
# Combining results
# ---------------------------------------------------------------------------
def union(r1: SimulationResult, r2: SimulationResult) -> SimulationResult:
    """Combine two frequency results sharing positions or frequencies.

    Shared positions: the frequency columns of ``r2`` are appended to those
    of ``r1``. Shared frequencies: the position rows are appended.
    """
    if not (
        isinstance(r1, FrequencySimulationResult)
        and isinstance(r2, FrequencySimulationResult)
    ):
        raise NotImplementedError(
            f"No implementation of union found for Simulation Results of type "
            f"{type(r1).__name__} and {type(r2).__name__}"
        )
    if r1.field_dim != r2.field_dim:
        raise ValueError(f"Cannot combine field dimensions {r1.field_dim} and {r2.field_dim}")

    if r1.x.shape == r2.x.shape and np.array_equal(r1.x, r2.x):
        logger.debug("union: shared positions, %d + %d frequencies", len(r1.omega), len(r2.omega))
        return FrequencySimulationResult(
            np.concatenate([r1.field, r2.field], axis=1),
            r1.x,
            np.concatenate([r1.omega, r2.omega]),
        )
    if r1.omega.shape == r2.omega.shape and np.array_equal(r1.omega, r2.omega):
        logger.debug("union: shared frequencies, %d + %d positions", len(r1.x), len(r2.x))
        return FrequencySimulationResult(
            np.concatenate([r1.field, r2.field], axis=0),
            np.concatenate([r1.x, r2.x], axis=0),
            r1.omega,
        )
    raise NotImplementedError(
        "No implementation of union found for FrequencySimulationResults "
        "sharing neither positions nor frequencies"
    )

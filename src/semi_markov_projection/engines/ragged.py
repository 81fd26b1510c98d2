"""
Ragged duration tables backed by one flat buffer.

Row t of a duration table has its own length. Rows are stored back to back
in a single float64 buffer with an offset index, so allocating a table is
one numpy allocation regardless of the number of time points.
"""

from collections.abc import Sequence

import numpy as np


class RaggedArray:
    """
    Float64 rows of varying length sharing one contiguous buffer.

    ``table[t]`` is a view on row t and ``table[t][u]`` / ``table[t, u]`` an
    entry. After ``freeze()`` every view is read-only.

    Parameters
    ----------
    row_lengths : Sequence[int]
        Length of each row

    Examples
    --------
    >>> table = RaggedArray([2, 3])
    >>> table[1][2] = 0.5
    >>> table.last(1)
    0.5
    """

    __slots__ = ("_buffer", "_offsets")

    def __init__(self, row_lengths: Sequence[int]):
        lengths = np.asarray(row_lengths, dtype=np.int64)
        if np.any(lengths < 0):
            raise ValueError("Row lengths must be non-negative")
        self._offsets = np.zeros(len(lengths) + 1, dtype=np.int64)
        np.cumsum(lengths, out=self._offsets[1:])
        self._offsets.flags.writeable = False
        self._buffer = np.zeros(int(self._offsets[-1]), dtype=np.float64)

    def __getstate__(self):
        return self._buffer, self._offsets, self.frozen

    def __setstate__(self, state) -> None:
        # Unpickled arrays come back writeable
        self._buffer, self._offsets, frozen = state
        self._offsets.flags.writeable = False
        if frozen:
            self._buffer.flags.writeable = False

    def __len__(self) -> int:
        return len(self._offsets) - 1

    def __getitem__(self, index: int | tuple[int, int]) -> np.ndarray | float:
        if isinstance(index, tuple):
            row, column = index
            return float(self.row(row)[column])
        return self.row(index)

    def __iter__(self):
        for t in range(len(self)):
            yield self.row(t)

    def row(self, t: int) -> np.ndarray:
        """View on row ``t``."""
        if t < 0:
            t += len(self)
        if not 0 <= t < len(self):
            raise IndexError(f"Row {t} out of range for {len(self)} rows")
        return self._buffer[self._offsets[t]:self._offsets[t + 1]]

    def row_length(self, t: int) -> int:
        """Number of entries in row ``t``."""
        return len(self.row(t))

    def last(self, t: int) -> float:
        """Entry at the largest duration index of row ``t``."""
        return float(self.row(t)[-1])

    def last_column(self) -> np.ndarray:
        """Entry at the largest duration index of every row."""
        if len(self) == 0:
            return np.zeros(0)
        return self._buffer[self._offsets[1:] - 1].copy()

    def freeze(self) -> "RaggedArray":
        """Make the buffer read-only; returns self."""
        self._buffer.flags.writeable = False
        return self

    @property
    def frozen(self) -> bool:
        """Whether the buffer is read-only."""
        return not self._buffer.flags.writeable

    def to_list(self) -> list[list[float]]:
        """Plain nested lists, for serialization."""
        return [row.tolist() for row in self]

import numpy as np


class RingBuffer:
    """
    Fixed-capacity circular buffer of floats backed by a numpy array.

    The head is the slot written by the current frame. ``read(offset)``
    looks ``offset`` slots into the past relative to the head, wrapping
    around the capacity, so callers never do modulo arithmetic themselves.
    """
    __slots__ = ('capacity', '_data', '_head')

    def __init__(self, capacity: int, fill: float = 0.0):
        capacity = int(capacity)
        if capacity <= 0:
            raise ValueError(f"RingBuffer capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = np.full(capacity, float(fill), dtype=np.float64)
        self._head = 0

    @property
    def head(self) -> int:
        return self._head

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the raw storage (index 0 is slot 0, not the head)."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def write(self, value: float) -> None:
        """Overwrite the head slot without advancing."""
        self._data[self._head] = value

    def advance(self) -> None:
        self._head = (self._head + 1) % self.capacity

    def push(self, value: float) -> None:
        """Write at the head, then advance."""
        self._data[self._head] = value
        self._head = (self._head + 1) % self.capacity

    def read(self, offset: int = 0) -> float:
        """Value ``offset`` slots back from the head (0 = head)."""
        return float(self._data[(self._head - int(offset)) % self.capacity])

    def read_many(self, offsets: np.ndarray) -> np.ndarray:
        """Vectorized ``read`` for an array of offsets."""
        idx = (self._head - np.asarray(offsets, dtype=np.int64)) % self.capacity
        return self._data[idx]

    def min(self) -> float:
        return float(np.min(self._data))

    def argmax(self) -> tuple[int, float]:
        """(slot index, value) of the first maximum in storage order."""
        idx = int(np.argmax(self._data))
        return idx, float(self._data[idx])

    def subtract(self, value: float) -> None:
        self._data -= value

    def reset(self, fill: float = 0.0) -> None:
        """Clear all state for a fresh start."""
        self._data.fill(float(fill))
        self._head = 0

    def __len__(self) -> int:
        return self.capacity

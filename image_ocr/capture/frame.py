"""Frame data structures."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class CapturedFrame:
    """Immutable video frame read from a capture device."""

    data: np.ndarray  # BGR image data
    frame_number: int
    monotonic_time: float  # time.perf_counter()
    wall_time: float  # time.time()

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        if self.data.ndim < 2:
            return (0, 0)
        return (int(self.data.shape[1]), int(self.data.shape[0]))

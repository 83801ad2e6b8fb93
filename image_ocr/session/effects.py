"""Side effects requested by the capture session reducer."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class OpenStream:
    device_id: str


@dataclass(frozen=True)
class CloseStream:
    pass


@dataclass(frozen=True)
class EndSession:
    """Tear down the modal hosting the session."""
    pass


Effect = Union[OpenStream, CloseStream, EndSession]

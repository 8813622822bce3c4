"""Request value type and request factory.

A Request is the unit of work flowing through the simulator. It is created
by the arrival generator, read by the dispatcher and a server, and dropped
once its completion or rejection has been recorded.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from enum import Enum


class RequestType(Enum):
    """Workload category of a request.

    The type is a label: service time is derived from the size alone
    unless service jitter is enabled, in which case IO_BOUND and MIXED
    requests vary around their nominal duration.
    """

    CPU_BOUND = "CpuBound"
    IO_BOUND = "IoBound"
    MIXED = "Mixed"

    @property
    def is_variable(self) -> bool:
        return self is not RequestType.CPU_BOUND


class RequestSize(Enum):
    """Request size, valued by its nominal service duration in milliseconds."""

    SMALL = 100
    MID = 300
    LARGE = 1000

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def service_time_s(self) -> float:
        return self.value / 1000.0


@dataclass(frozen=True)
class Request:
    """Immutable request produced by the arrival generator.

    Attributes:
        id: Monotonic sequence number, unique within a run.
        arrival_time: Simulated seconds since the run started.
        request_type: Workload category.
        size: Size class, which fixes the nominal service duration.
    """

    id: int
    arrival_time: float
    request_type: RequestType
    size: RequestSize

    @property
    def nominal_service_time(self) -> float:
        """Nominal service duration in simulated seconds."""
        return self.size.service_time_s

    @property
    def name(self) -> str:
        return f"{self.size.label} {self.request_type.value}"

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


class RequestFactory:
    """Creates requests with monotonically increasing ids.

    The counter is guarded by a lock so ids stay unique even if requests
    are created from more than one thread.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def create(
        self,
        arrival_time: float,
        request_type: RequestType,
        size: RequestSize,
    ) -> Request:
        with self._lock:
            request_id = next(self._counter)
        return Request(
            id=request_id,
            arrival_time=arrival_time,
            request_type=request_type,
            size=size,
        )

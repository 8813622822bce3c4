"""Run configuration for the dispatch simulator.

A SimulationConfig is validated before any execution unit starts; invalid
values raise ConfigurationError and the run never begins.

Example:
    from dispatchsimulator import SimulationConfig

    config = SimulationConfig(balancing_mode="round-robin", arrival_rate=5.0)
    config.validate()

Environment variables read by ``SimulationConfig.from_env``:
    DS_BALANCING_MODE: random, round-robin or smallest-queue
    DS_ARRIVAL_RATE: Mean arrivals per simulated second (0-10)
    DS_PENDING_CAPACITY: Pending queue capacity
    DS_SERVER_CAPACITY: Per-server queue capacity
    DS_TIME_SCALE: Wall seconds per simulated second
    DS_SEED: Random seed
"""

from __future__ import annotations

import math
import os
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any

from dispatchsimulator.core.request import RequestSize, RequestType

MAX_ARRIVAL_RATE = 10.0
DEFAULT_PENDING_CAPACITY = 20
DEFAULT_SERVER_CAPACITY = 10
DEFAULT_NUM_SERVERS = 3


class ConfigurationError(ValueError):
    """Raised when a simulation is configured with invalid values."""


class BalancingMode(Enum):
    """Closed set of dispatch policies."""

    RANDOM = "random"
    ROUND_ROBIN = "round-robin"
    SMALLEST_QUEUE = "smallest-queue"

    @classmethod
    def parse(cls, value: BalancingMode | str) -> BalancingMode:
        """Accept an enum member or its name in any common spelling."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        for mode in cls:
            if key == mode.value:
                return mode
        choices = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"Unknown balancing mode {value!r}; expected one of: {choices}")


class ArrivalProcess(Enum):
    POISSON = "poisson"
    CONSTANT = "constant"

    @classmethod
    def parse(cls, value: ArrivalProcess | str) -> ArrivalProcess:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown arrival process {value!r}") from None


def _uniform(members) -> dict:
    return {m: 1.0 for m in members}


@dataclass
class SimulationConfig:
    """Parameters of one simulation run.

    Attributes:
        balancing_mode: Dispatch policy, fixed for the whole run.
        arrival_rate: Mean arrivals per simulated second, 0 to 10.
            Zero means no arrivals.
        pending_capacity: Capacity of the pending queue.
        server_capacity: Capacity of each server queue.
        num_servers: Number of servers in the fleet.
        time_scale: Wall-clock seconds per simulated second.
        arrival_process: Poisson (exponential gaps) or constant spacing.
        type_weights: Relative weight of each request type.
        size_weights: Relative weight of each request size.
        service_jitter: Fractional spread applied to IO-bound and mixed
            requests. Zero keeps service time purely size-based.
        probe_interval: Simulated seconds between history samples, or
            None to disable sampling.
        seed: Seed for the run's random generator.
    """

    balancing_mode: BalancingMode | str = BalancingMode.RANDOM
    arrival_rate: float = 5.0
    pending_capacity: int = DEFAULT_PENDING_CAPACITY
    server_capacity: int = DEFAULT_SERVER_CAPACITY
    num_servers: int = DEFAULT_NUM_SERVERS
    time_scale: float = 1.0
    arrival_process: ArrivalProcess | str = ArrivalProcess.POISSON
    type_weights: dict[RequestType, float] = field(default_factory=lambda: _uniform(RequestType))
    size_weights: dict[RequestSize, float] = field(default_factory=lambda: _uniform(RequestSize))
    service_jitter: float = 0.0
    probe_interval: float | None = 1.0
    seed: int | None = None

    def validate(self) -> SimulationConfig:
        """Check every field, normalizing enum-valued ones in place.

        Returns:
            self, to allow chaining.

        Raises:
            ConfigurationError: If any value is out of range.
        """
        self.balancing_mode = BalancingMode.parse(self.balancing_mode)
        self.arrival_process = ArrivalProcess.parse(self.arrival_process)

        rate = self.arrival_rate
        if not isinstance(rate, (int, float)) or math.isnan(rate):
            raise ConfigurationError(f"arrival_rate must be a number, got {rate!r}")
        if rate < 0 or rate > MAX_ARRIVAL_RATE:
            raise ConfigurationError(
                f"arrival_rate must be within [0, {MAX_ARRIVAL_RATE:g}], got {rate}"
            )

        for name in ("pending_capacity", "server_capacity", "num_servers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if not self.time_scale > 0:
            raise ConfigurationError(f"time_scale must be positive, got {self.time_scale!r}")
        if not 0.0 <= self.service_jitter < 1.0:
            raise ConfigurationError(
                f"service_jitter must be within [0, 1), got {self.service_jitter!r}"
            )
        if self.probe_interval is not None and not self.probe_interval > 0:
            raise ConfigurationError(
                f"probe_interval must be positive or None, got {self.probe_interval!r}"
            )

        self.type_weights = _check_weights("type_weights", self.type_weights, RequestType)
        self.size_weights = _check_weights("size_weights", self.size_weights, RequestSize)
        return self

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> SimulationConfig:
        """Build and validate a config from a plain mapping.

        Unknown keys are rejected so typos surface as configuration errors.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**values).validate()

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> SimulationConfig:
        """Build and validate a config from ``DS_*`` environment variables.

        Variables that are not set keep their defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        converters = {
            "DS_BALANCING_MODE": ("balancing_mode", str),
            "DS_ARRIVAL_RATE": ("arrival_rate", float),
            "DS_PENDING_CAPACITY": ("pending_capacity", int),
            "DS_SERVER_CAPACITY": ("server_capacity", int),
            "DS_TIME_SCALE": ("time_scale", float),
            "DS_SEED": ("seed", int),
        }
        for var, (name, convert) in converters.items():
            raw = env.get(var, "").strip()
            if not raw:
                continue
            try:
                values[name] = convert(raw)
            except ValueError:
                raise ConfigurationError(f"{var}={raw!r} is not a valid {convert.__name__}") from None
        return cls.from_dict(values)

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, Enum):
                result[key] = value.value
        result["type_weights"] = {k.value: v for k, v in self.type_weights.items()}
        result["size_weights"] = {k.name.lower(): v for k, v in self.size_weights.items()}
        return result


def _check_weights(name: str, weights: dict, enum_cls) -> dict:
    if not isinstance(weights, dict):
        raise ConfigurationError(f"{name} must be a mapping")
    normalized = {}
    for key, weight in weights.items():
        member = key if isinstance(key, enum_cls) else _member_by_name(enum_cls, key)
        if member is None:
            raise ConfigurationError(f"{name} has unknown key {key!r}")
        if not isinstance(weight, (int, float)) or math.isnan(weight) or weight < 0:
            raise ConfigurationError(f"{name}[{key!r}] must be a non-negative number")
        normalized[member] = float(weight)
    if sum(normalized.values()) <= 0:
        raise ConfigurationError(f"{name} must contain at least one positive weight")
    return normalized


def _member_by_name(enum_cls, key):
    text = str(key).strip().lower().replace("-", "_")
    for member in enum_cls:
        if text in (member.name.lower(), str(member.value).lower(), member.name.lower().replace("_", "")):
            return member
    return None

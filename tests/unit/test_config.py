"""Tests for SimulationConfig validation and construction."""

from __future__ import annotations

import pytest

from dispatchsimulator.config import (
    ArrivalProcess,
    BalancingMode,
    ConfigurationError,
    SimulationConfig,
)
from dispatchsimulator.core.request import RequestSize, RequestType
from dispatchsimulator.engine import SimulationEngine


class TestDefaults:
    def test_defaults_are_valid(self):
        config = SimulationConfig().validate()
        assert config.balancing_mode is BalancingMode.RANDOM
        assert config.pending_capacity == 20
        assert config.server_capacity == 10
        assert config.num_servers == 3
        assert config.arrival_process is ArrivalProcess.POISSON


class TestBalancingMode:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("random", BalancingMode.RANDOM),
            ("round-robin", BalancingMode.ROUND_ROBIN),
            ("ROUND_ROBIN", BalancingMode.ROUND_ROBIN),
            ("smallest queue", BalancingMode.SMALLEST_QUEUE),
            (BalancingMode.SMALLEST_QUEUE, BalancingMode.SMALLEST_QUEUE),
        ],
    )
    def test_parse(self, raw, expected):
        assert BalancingMode.parse(raw) is expected

    def test_unknown_mode_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown balancing mode"):
            SimulationConfig(balancing_mode="least-latency").validate()


class TestArrivalRate:
    @pytest.mark.parametrize("rate", [0, 0.5, 10, 10.0])
    def test_accepts_rates_in_range(self, rate):
        SimulationConfig(arrival_rate=rate).validate()

    @pytest.mark.parametrize("rate", [-0.1, 10.01, 100, float("nan")])
    def test_rejects_rates_out_of_range(self, rate):
        with pytest.raises(ConfigurationError):
            SimulationConfig(arrival_rate=rate).validate()

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SimulationConfig(arrival_rate=11).validate()


class TestCapacities:
    @pytest.mark.parametrize("field_name", ["pending_capacity", "server_capacity", "num_servers"])
    @pytest.mark.parametrize("value", [0, -1, 2.5, True])
    def test_rejects_non_positive_integers(self, field_name, value):
        with pytest.raises(ConfigurationError, match=field_name):
            SimulationConfig(**{field_name: value}).validate()

    def test_overrides_accepted(self):
        config = SimulationConfig(pending_capacity=5, server_capacity=2).validate()
        assert config.pending_capacity == 5
        assert config.server_capacity == 2


class TestOtherFields:
    def test_rejects_bad_time_scale(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(time_scale=0).validate()

    def test_rejects_bad_jitter(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(service_jitter=1.0).validate()

    def test_rejects_bad_probe_interval(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(probe_interval=0).validate()

    def test_probe_can_be_disabled(self):
        assert SimulationConfig(probe_interval=None).validate().probe_interval is None

    def test_weights_accept_names(self):
        config = SimulationConfig(
            type_weights={"cpu-bound": 1, "io_bound": 0, "Mixed": 2},
            size_weights={"small": 1, "large": 1},
        ).validate()
        assert config.type_weights == {
            RequestType.CPU_BOUND: 1.0,
            RequestType.IO_BOUND: 0.0,
            RequestType.MIXED: 2.0,
        }
        assert set(config.size_weights) == {RequestSize.SMALL, RequestSize.LARGE}

    def test_weights_need_a_positive_entry(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(size_weights={"small": 0}).validate()

    def test_weights_reject_unknown_keys(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(size_weights={"huge": 1}).validate()


class TestFromDict:
    def test_builds_validated_config(self):
        config = SimulationConfig.from_dict({"balancing_mode": "round-robin", "arrival_rate": 3})
        assert config.balancing_mode is BalancingMode.ROUND_ROBIN
        assert config.arrival_rate == 3

    def test_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="arival_rate"):
            SimulationConfig.from_dict({"arival_rate": 3})


class TestFromEnv:
    def test_reads_variables(self):
        config = SimulationConfig.from_env(
            {
                "DS_BALANCING_MODE": "smallest-queue",
                "DS_ARRIVAL_RATE": "7.5",
                "DS_PENDING_CAPACITY": "30",
                "DS_SERVER_CAPACITY": "4",
                "DS_TIME_SCALE": "0.1",
                "DS_SEED": "42",
            }
        )
        assert config.balancing_mode is BalancingMode.SMALLEST_QUEUE
        assert config.arrival_rate == 7.5
        assert config.pending_capacity == 30
        assert config.server_capacity == 4
        assert config.time_scale == 0.1
        assert config.seed == 42

    def test_empty_environment_gives_defaults(self):
        assert SimulationConfig.from_env({}).arrival_rate == SimulationConfig().arrival_rate

    def test_malformed_number(self):
        with pytest.raises(ConfigurationError, match="DS_ARRIVAL_RATE"):
            SimulationConfig.from_env({"DS_ARRIVAL_RATE": "fast"})


class TestToDict:
    def test_enums_are_serialized_as_values(self):
        data = SimulationConfig(balancing_mode="round-robin").validate().to_dict()
        assert data["balancing_mode"] == "round-robin"
        assert data["arrival_process"] == "poisson"
        assert data["type_weights"]["CpuBound"] == 1.0
        assert data["size_weights"]["small"] == 1.0


class TestNothingStartsOnBadConfig:
    def test_engine_construction_fails_before_any_task(self):
        with pytest.raises(ConfigurationError):
            SimulationEngine(SimulationConfig(arrival_rate=42))

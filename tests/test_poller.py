"""Tests for readiness polling."""

import pytest
from kserveup.core.errors import ConfigurationError, PollInProgressError, TransientNetworkError
from kserveup.orchestration.poller import ReadinessPoller, ReadinessState
from kserveup.providers.base import WorkloadStatus


@pytest.fixture
def poller(control_plane, clock):
    return ReadinessPoller(control_plane, clock=clock)


class TestReadinessPoller:
    def test_times_out_at_deadline(self, poller, control_plane, clock):
        control_plane.statuses = [WorkloadStatus.initializing("Predictor not ready")]

        report = poller.poll("m1", "ns1", interval=1, deadline=5)

        assert report.state == ReadinessState.TIMED_OUT
        assert clock.now() == pytest.approx(5.0)
        assert report.elapsed == pytest.approx(5.0)
        assert report.attempts == 6
        assert report.last_condition == "Predictor not ready"

    def test_ready_short_circuits(self, poller, control_plane, clock):
        control_plane.statuses = [
            WorkloadStatus.initializing(),
            WorkloadStatus.ready("https://x"),
        ]

        report = poller.poll("m1", "ns1", interval=1, deadline=100)

        assert report.state == ReadinessState.READY
        assert report.endpoint == "https://x"
        assert report.attempts == 2
        assert clock.now() == pytest.approx(1.0)

    def test_failure_is_terminal(self, poller, control_plane, clock):
        control_plane.statuses = [
            WorkloadStatus.initializing(),
            WorkloadStatus.failed("FailedToLoad", "storage-initializer: NoSuchBucket"),
            WorkloadStatus.ready("https://never"),
        ]

        report = poller.poll("m1", "ns1", interval=10, deadline=300)

        assert report.state == ReadinessState.FAILED
        assert report.reason == "FailedToLoad"
        assert report.last_condition == "storage-initializer: NoSuchBucket"
        assert control_plane.status_calls == 2

    def test_not_found_and_transient_errors_count_as_initializing(
        self, poller, control_plane, clock
    ):
        control_plane.statuses = [
            WorkloadStatus.not_found(),
            TransientNetworkError("connection refused"),
            WorkloadStatus.ready("https://ns1.example/m1"),
        ]

        report = poller.poll("m1", "ns1", interval=2, deadline=60)

        assert report.state == ReadinessState.READY
        assert report.attempts == 3
        assert clock.sleeps == [2, 2]

    def test_last_sleep_is_clamped_to_deadline(self, poller, control_plane, clock):
        control_plane.statuses = [WorkloadStatus.initializing()]

        report = poller.poll("m1", "ns1", interval=4, deadline=10)

        assert report.state == ReadinessState.TIMED_OUT
        assert clock.sleeps == [4, 4, 2]
        assert clock.now() == pytest.approx(10.0)

    def test_defaults_allow_thirty_intervals(self, poller, control_plane, clock):
        control_plane.statuses = [WorkloadStatus.initializing()]

        report = poller.poll("m1", "ns1")

        assert report.state == ReadinessState.TIMED_OUT
        assert len(clock.sleeps) == 30
        assert clock.now() == pytest.approx(300.0)

    def test_rejects_non_positive_timings(self, poller):
        with pytest.raises(ConfigurationError):
            poller.poll("m1", "ns1", interval=0, deadline=5)

    def test_single_poll_in_flight_per_workload(self, clock):
        nested = {}

        class ReentrantClient:
            def get_workload_status(self, name, namespace):
                if name == "m1":
                    with pytest.raises(PollInProgressError):
                        poller.poll("m1", namespace, interval=1, deadline=1)
                    nested["other"] = poller.poll("m2", namespace, interval=1, deadline=1)
                return WorkloadStatus.ready("https://x")

        poller = ReadinessPoller(ReentrantClient(), clock=clock)

        report = poller.poll("m1", "ns1", interval=1, deadline=5)

        assert report.state == ReadinessState.READY
        assert nested["other"].workload == "m2"

    def test_in_flight_marker_released_after_poll(self, poller, control_plane):
        control_plane.statuses = [WorkloadStatus.ready("https://x")]

        poller.poll("m1", "ns1", interval=1, deadline=5)
        report = poller.poll("m1", "ns1", interval=1, deadline=5)

        assert report.state == ReadinessState.READY


class TestCancellation:
    def test_interrupt_between_ticks_propagates(self, control_plane, interrupting_clock):
        control_plane.statuses = [WorkloadStatus.initializing()]
        poller = ReadinessPoller(control_plane, clock=interrupting_clock)

        with pytest.raises(KeyboardInterrupt):
            poller.poll("m1", "ns1", interval=1, deadline=5)

        assert control_plane.status_calls == 1
        assert poller._in_flight == set()

    def test_workload_can_be_polled_again_after_interrupt(
        self, control_plane, clock, interrupting_clock
    ):
        control_plane.statuses = [WorkloadStatus.initializing()]
        poller = ReadinessPoller(control_plane, clock=interrupting_clock)
        with pytest.raises(KeyboardInterrupt):
            poller.poll("m1", "ns1", interval=1, deadline=5)

        control_plane.statuses = [WorkloadStatus.ready("https://x")]
        poller._clock = clock
        report = poller.poll("m1", "ns1", interval=1, deadline=5)

        assert report.state == ReadinessState.READY

"""
Tests for JobSupervisor against fake ffmpeg/ffprobe scripts.

Worker signals reach the supervisor through queued connections, so each
test pumps the Qt event loop (wait_until) until the terminal event lands.
"""

import threading
import time

import pytest

from mediacore.errors import Busy, InvalidRequest, NotFound
from mediacore.models import (
    JobCompleted, JobFailed, JobProgress, JobRequest, JobStarted, JobState, JobStopped,
    TERMINAL_EVENTS,
)
from mediacore.supervisor import JobSupervisor

pytestmark = pytest.mark.engine


def _collect(supervisor):
    events = []
    supervisor.job_event.connect(lambda event: events.append(event))
    return events


def _terminal(events):
    return [e for e in events if isinstance(e, TERMINAL_EVENTS)]


def _convert(source, tmp_path, name="out/result.mp4"):
    return JobRequest.create("convert", source, tmp_path / name, format="mp4")


class TestLifecycle:

    def test_completed_job(self, qapp, wait_until, fake_ffmpeg, fake_ffprobe, source_video, tmp_path):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)

        job_id = supervisor.start(_convert(source_video, tmp_path))
        assert supervisor.is_busy()
        assert wait_until(lambda: _terminal(events))

        assert isinstance(events[0], JobStarted)
        assert events[0].job_id == job_id
        assert str(fake_ffmpeg) in events[0].command

        progress = [e for e in events if isinstance(e, JobProgress)]
        assert [p.snapshot.percent for p in progress] == [50.0, 100.0]
        assert progress[0].snapshot.time == 2
        assert progress[0].snapshot.speed == "2.0x"

        assert isinstance(events[-1], JobCompleted)
        assert events[-1].output == str(tmp_path / "out" / "result.mp4")
        assert (tmp_path / "out" / "result.mp4").exists()
        assert len(_terminal(events)) == 1

        assert supervisor.state == JobState.IDLE
        assert supervisor.last_outcome.state == JobState.COMPLETING
        assert supervisor.last_outcome.job_id == job_id

    def test_failed_job_reports_engine_stderr(self, qapp, wait_until, failing_ffmpeg,
                                              fake_ffprobe, source_video, tmp_path):
        supervisor = JobSupervisor(failing_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)

        supervisor.start(_convert(source_video, tmp_path))
        assert wait_until(lambda: _terminal(events))

        failure = events[-1]
        assert isinstance(failure, JobFailed)
        assert "Invalid data found when processing input" in failure.reason
        assert len(_terminal(events)) == 1
        assert supervisor.state == JobState.IDLE
        assert supervisor.last_outcome.state == JobState.FAILED

    def test_missing_engine_binary_fails_job(self, qapp, wait_until, tmp_path, source_video,
                                             fake_ffprobe):
        supervisor = JobSupervisor(tmp_path / "no-such-ffmpeg", fake_ffprobe)
        events = _collect(supervisor)

        supervisor.start(_convert(source_video, tmp_path))
        assert wait_until(lambda: _terminal(events))
        assert isinstance(events[-1], JobFailed)
        assert "ffmpeg not found" in events[-1].reason

    def test_next_job_can_start_from_terminal_handler(self, qapp, wait_until, fake_ffmpeg,
                                                      fake_ffprobe, source_video, tmp_path):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        started = []

        def on_event(event):
            if isinstance(event, JobCompleted) and not started:
                started.append(supervisor.start(_convert(source_video, tmp_path, "out/second.mp4")))

        supervisor.job_event.connect(on_event)
        first = supervisor.start(_convert(source_video, tmp_path))

        assert wait_until(lambda: started and not supervisor.is_busy())
        assert started[0] == first + 1


class TestAdmission:

    def test_second_start_is_busy(self, qapp, wait_until, slow_ffmpeg, fake_ffprobe,
                                  source_video, tmp_path):
        supervisor = JobSupervisor(slow_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)
        job_id = supervisor.start(_convert(source_video, tmp_path))

        with pytest.raises(Busy):
            supervisor.start(_convert(source_video, tmp_path, "out/other.mp4"))

        # first job unaffected
        assert supervisor.state == JobState.RUNNING
        assert [e.job_id for e in events] == [job_id]

        assert supervisor.stop()

    def test_simultaneous_starts_admit_one_job(self, qapp, slow_ffmpeg, fake_ffprobe,
                                               source_video, tmp_path):
        supervisor = JobSupervisor(slow_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)
        states = []
        supervisor.state_changed.connect(lambda state: states.append(state))

        barrier = threading.Barrier(2)
        admitted, rejected = [], []

        def attempt(name):
            barrier.wait()
            try:
                admitted.append(supervisor.start(_convert(source_video, tmp_path, f"out/{name}.mp4")))
            except Busy:
                rejected.append(name)

        threads = [threading.Thread(target=attempt, args=(name,)) for name in ("a", "b")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(admitted) == 1
        assert len(rejected) == 1
        assert states == [JobState.RUNNING]
        assert [e.job_id for e in events if isinstance(e, JobStarted)] == admitted
        assert supervisor.current_job_id == admitted[0]

        assert supervisor.stop()

    def test_rejected_request_creates_no_output_folder(self, qapp, fake_ffmpeg, fake_ffprobe,
                                                       source_video, tmp_path):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        request = JobRequest.create("convert", source_video, tmp_path / "fresh" / "x.mkv",
                                    format="mkv")

        with pytest.raises(InvalidRequest):
            supervisor.start(request)
        assert not (tmp_path / "fresh").exists()
        assert supervisor.state == JobState.IDLE

    def test_missing_input(self, qapp, fake_ffmpeg, fake_ffprobe, tmp_path):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)

        with pytest.raises(NotFound):
            supervisor.start(_convert(tmp_path / "ghost.mp4", tmp_path))
        assert supervisor.state == JobState.IDLE
        assert events == []

    @pytest.mark.parametrize("make_request", [
        lambda src, tmp: JobRequest.create("convert", src, "", format="mp4"),
        lambda src, tmp: JobRequest.create("convert", src, src, format="mp4"),
        lambda src, tmp: JobRequest.create("convert", src, tmp, format="mp4"),
        lambda src, tmp: JobRequest.create("convert", [src, src], tmp / "x.mp4", format="mp4"),
        lambda src, tmp: JobRequest.create("merge", [], tmp / "x.mp4"),
        lambda src, tmp: JobRequest.create("convert", src, tmp / "x.mkv", format="mkv"),
    ], ids=["empty-output", "output-is-input", "output-is-dir", "two-inputs",
            "merge-no-inputs", "bad-format"])
    def test_invalid_requests_leave_state_alone(self, qapp, fake_ffmpeg, fake_ffprobe,
                                                source_video, tmp_path, make_request):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)

        with pytest.raises(InvalidRequest):
            supervisor.start(make_request(source_video, tmp_path))
        assert supervisor.state == JobState.IDLE
        assert not supervisor.is_busy()
        assert events == []


class TestStop:

    def test_stop_when_idle_is_noop(self, qapp, fake_ffmpeg, fake_ffprobe):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)
        assert supervisor.stop() is False
        assert events == []

    def test_stop_running_job(self, qapp, wait_until, slow_ffmpeg, fake_ffprobe,
                              source_video, tmp_path):
        supervisor = JobSupervisor(slow_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)
        job_id = supervisor.start(_convert(source_video, tmp_path))

        assert wait_until(lambda: any(isinstance(e, JobProgress) for e in events))
        assert supervisor.stop() is True

        # stop() returns with the slot already free
        assert supervisor.state == JobState.IDLE
        assert isinstance(events[-1], JobStopped)
        assert events[-1].job_id == job_id

        # late worker signals must not add a second terminal event
        wait_until(lambda: False, timeout=0.3)
        assert len(_terminal(events)) == 1
        stopped_at = next(i for i, e in enumerate(events) if isinstance(e, JobStopped))
        assert not [e for e in events[stopped_at + 1:] if isinstance(e, JobProgress)]
        assert supervisor.last_outcome.state == JobState.STOPPED

    def test_stop_during_duration_lookup_returns_promptly(self, qapp, wait_until, fake_ffmpeg,
                                                          slow_ffprobe, source_video, tmp_path):
        supervisor = JobSupervisor(fake_ffmpeg, slow_ffprobe)
        events = _collect(supervisor)
        job_id = supervisor.start(_convert(source_video, tmp_path))

        # let the worker get as far as the hanging ffprobe
        wait_until(lambda: False, timeout=0.3)
        began = time.monotonic()
        assert supervisor.stop() is True
        assert time.monotonic() - began < 2.0

        assert supervisor.state == JobState.IDLE
        assert isinstance(events[-1], JobStopped)
        assert events[-1].job_id == job_id
        assert not (tmp_path / "out" / "result.mp4").exists()

        wait_until(lambda: False, timeout=0.3)
        assert len(_terminal(events)) == 1

    def test_restart_after_stop(self, qapp, wait_until, slow_ffmpeg, fake_ffprobe,
                                source_video, tmp_path):
        supervisor = JobSupervisor(slow_ffmpeg, fake_ffprobe)
        first = supervisor.start(_convert(source_video, tmp_path))
        supervisor.stop()

        second = supervisor.start(_convert(source_video, tmp_path))
        assert second == first + 1
        assert supervisor.state == JobState.RUNNING
        supervisor.stop()

    def test_late_worker_signals_are_dropped(self, qapp, fake_ffmpeg, fake_ffprobe):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)

        supervisor._on_worker_succeeded(7, "/tmp/x.mp4")
        supervisor._on_worker_failed(7, "boom")
        assert events == []
        assert supervisor.state == JobState.IDLE


class TestBinaries:

    def test_new_binaries_used_by_next_job(self, qapp, wait_until, failing_ffmpeg, fake_ffmpeg,
                                           fake_ffprobe, source_video, tmp_path):
        supervisor = JobSupervisor(failing_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)

        supervisor.set_binaries(fake_ffmpeg, fake_ffprobe)
        supervisor.start(_convert(source_video, tmp_path))
        assert wait_until(lambda: _terminal(events))

        assert str(fake_ffmpeg) in events[0].command
        assert isinstance(events[-1], JobCompleted)

    def test_running_job_keeps_its_binaries(self, qapp, slow_ffmpeg, fake_ffmpeg, fake_ffprobe,
                                            source_video, tmp_path):
        supervisor = JobSupervisor(slow_ffmpeg, fake_ffprobe)
        events = _collect(supervisor)
        supervisor.start(_convert(source_video, tmp_path))

        supervisor.set_binaries(fake_ffmpeg, fake_ffprobe)
        assert supervisor.state == JobState.RUNNING
        assert supervisor.ffmpeg == fake_ffmpeg
        assert str(slow_ffmpeg) in events[0].command

        assert supervisor.stop()


class TestProbe:

    def test_probe_sync(self, qapp, fake_ffmpeg, fake_ffprobe, source_video):
        info = JobSupervisor(fake_ffmpeg, fake_ffprobe).probe(source_video)
        assert info.resolution == "1280x720"
        assert info.duration == 4.0

    def test_probe_async_does_not_touch_job_slot(self, qapp, wait_until, fake_ffmpeg,
                                                 fake_ffprobe, source_video):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        results = []
        supervisor.probe_finished.connect(lambda path, info: results.append((path, info)))

        supervisor.probe_async(source_video)
        assert wait_until(lambda: results)
        assert wait_until(lambda: not supervisor._probe_workers)
        assert results[0][0] == str(source_video)
        assert results[0][1].codec == "h264"
        assert supervisor.state == JobState.IDLE

    def test_probe_async_missing_file(self, qapp, wait_until, fake_ffmpeg, fake_ffprobe, tmp_path):
        supervisor = JobSupervisor(fake_ffmpeg, fake_ffprobe)
        failures = []
        supervisor.probe_failed.connect(lambda path, kind, msg: failures.append(kind))

        supervisor.probe_async(tmp_path / "ghost.mp4")
        assert wait_until(lambda: failures)
        assert wait_until(lambda: not supervisor._probe_workers)
        assert failures == ["NotFound"]

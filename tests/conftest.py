"""
Pytest configuration for the test suite.

Qt runs on the offscreen platform so nothing needs a display. The engine
is replaced by tiny shell scripts that speak ffmpeg's ``-progress`` format
and ffprobe's JSON, which keeps the tests independent of a real ffmpeg.
"""

import os
import stat
import sys
import time
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402

# Make the project root importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "engine: runs fake ffmpeg/ffprobe shell scripts (POSIX only)"
    )


def pytest_collection_modifyitems(config, items):
    if sys.platform != "win32":
        return
    skip = pytest.mark.skip(reason="fake engine scripts need /bin/sh")
    for item in items:
        if "engine" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def _wait_until(predicate, timeout: float = 10.0) -> bool:
    """Pump the Qt event loop until *predicate* holds or *timeout* expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        QApplication.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    QApplication.processEvents()
    return predicate()


@pytest.fixture
def wait_until(qapp):
    return _wait_until


# ── Fake engine binaries ──────────────────────────────────────────────────────

FFPROBE_JSON = (
    '{"format": {"duration": "4.000000", "size": "1048576", "bit_rate": "2097152"},'
    ' "streams": [{"codec_type": "video", "codec_name": "h264",'
    ' "width": 1280, "height": 720, "r_frame_rate": "30000/1001"},'
    ' {"codec_type": "audio", "codec_name": "aac"}]}'
)

# Two progress blocks, then the output file appears and ffmpeg exits 0
FFMPEG_OK = r"""#!/bin/sh
for last; do :; done
printf 'frame=30\nfps=30.0\ntotal_size=524288\nout_time_us=2000000\nout_time=00:00:02.000000\nspeed=2.0x\nprogress=continue\n'
printf 'frame=60\nfps=30.0\ntotal_size=1048576\nout_time_us=4000000\nout_time=00:00:04.000000\nspeed=2.0x\nprogress=end\n'
: > "$last"
exit 0
"""

FFMPEG_FAIL = r"""#!/bin/sh
echo "ffmpeg version n6.1 Copyright (c) 2000-2023 the FFmpeg developers" >&2
echo "input.mp4: Invalid data found when processing input" >&2
exit 1
"""

# One progress block, then hang until terminated
FFMPEG_SLOW = r"""#!/bin/sh
printf 'frame=1\nfps=0.0\ntotal_size=0\nout_time_us=0\nout_time=00:00:00.000000\nspeed=N/A\nprogress=continue\n'
exec sleep 30
"""


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_ffprobe(tmp_path):
    return _write_script(tmp_path / "ffprobe", f"#!/bin/sh\ncat <<'EOF'\n{FFPROBE_JSON}\nEOF\n")


@pytest.fixture
def fake_ffmpeg(tmp_path):
    return _write_script(tmp_path / "ffmpeg", FFMPEG_OK)


@pytest.fixture
def failing_ffmpeg(tmp_path):
    return _write_script(tmp_path / "ffmpeg-fail", FFMPEG_FAIL)


@pytest.fixture
def slow_ffmpeg(tmp_path):
    return _write_script(tmp_path / "ffmpeg-slow", FFMPEG_SLOW)


@pytest.fixture
def slow_ffprobe(tmp_path):
    # Hangs like ffprobe stuck on a network share, until terminated
    return _write_script(tmp_path / "ffprobe-slow", "#!/bin/sh\nexec sleep 8\n")


@pytest.fixture
def source_video(tmp_path):
    path = tmp_path / "media" / "input.mp4"
    path.parent.mkdir()
    path.write_bytes(b"\x00" * 2048)
    return path

"""Pytest configuration and fixtures."""

import os
import stat
import sys
import tempfile
from pathlib import Path

import pytest


# Stand-in for PotreeConverter. It reads the whole input, writes a few
# output files into the -o directory and fails when the input contains
# the marker bytes FAIL.
FAKE_CONVERTER_SOURCE = '''#!{python}
import json
import os
import sys
import time

args = sys.argv[1:]
input_path = args[0]
output_dir = args[args.index("-o") + 1]

log_path = os.environ.get("FAKE_POTREE_LOG")
delay = float(os.environ.get("FAKE_POTREE_DELAY", "0"))

if log_path:
    with open(log_path, "a", encoding="utf-8") as log:
        log.write("start %f\\n" % time.time())

with open(input_path, "rb") as f:
    data = f.read()

print("Converting %s" % input_path, flush=True)
time.sleep(delay)

if log_path:
    with open(log_path, "a", encoding="utf-8") as log:
        log.write("end %f\\n" % time.time())

if b"FAIL" in data:
    sys.stderr.write("invalid point record in %s\\n" % input_path)
    sys.exit(1)

os.makedirs(output_dir, exist_ok=True)
with open(os.path.join(output_dir, "metadata.json"), "w", encoding="utf-8") as f:
    json.dump({{"input": input_path, "size": len(data)}}, f)
with open(os.path.join(output_dir, "octree.bin"), "wb") as f:
    f.write(data[:16])
with open(os.path.join(output_dir, "hierarchy.bin"), "wb") as f:
    f.write(b"\\x00" * 8)
print("Done", flush=True)
'''


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_converter(tmp_path: Path) -> Path:
    """Executable script that behaves like PotreeConverter."""
    script = tmp_path / "bin" / "PotreeConverter"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(FAKE_CONVERTER_SOURCE.format(python=sys.executable), encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def converter_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """File where the stand-in converter records start and end times."""
    log_path = tmp_path / "converter_calls.log"
    monkeypatch.setenv("FAKE_POTREE_LOG", str(log_path))
    return log_path


@pytest.fixture
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run in an isolated directory without lazconv.yaml or LAZCONV_ variables."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("LAZCONV_"):
            monkeypatch.delenv(key)

    from lazconv.config.settings import get_settings

    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def write_laz(path: Path, size_bytes: int, marker: bytes = b"") -> Path:
    """Write a file of ``size_bytes`` with an optional marker at its midpoint."""
    path.parent.mkdir(parents=True, exist_ok=True)
    pattern = bytes(range(251))
    data = bytearray((pattern * (size_bytes // len(pattern) + 1))[:size_bytes])
    if marker:
        mid = size_bytes // 2
        data[mid : mid + len(marker)] = marker
    path.write_bytes(bytes(data))
    return path


def max_overlap(log_path: Path) -> int:
    """Highest number of converter runs that were in progress together."""
    events = []
    for line in log_path.read_text(encoding="utf-8").splitlines():
        kind, stamp = line.split()
        # Ends sort before starts at the same instant
        events.append((float(stamp), 0 if kind == "end" else 1))

    running = peak = 0
    for _, is_start in sorted(events):
        running += 1 if is_start else -1
        peak = max(peak, running)
    return peak


@pytest.fixture
def make_laz():
    """Factory writing synthetic input files of a given size."""
    return write_laz


@pytest.fixture
def overlap_of():
    """Measure peak converter parallelism from a converter log."""
    return max_overlap

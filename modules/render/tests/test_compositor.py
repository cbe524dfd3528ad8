"""
Tests for the Remotion compositor adapter.
"""

import asyncio
import os
import sys

import pytest
from modules.render.compositor import RemotionCompositor, parse_progress
from shared.errors import CompositionError


@pytest.mark.parametrize(
    "line, expected",
    [
        ("Rendered 450/900", 0.5),
        ("Rendered 900/900, time remaining: 0s", 1.0),
        ("Rendered   90 / 1800", 0.05),
        ("Bundling 40%", None),
        ("Rendered 5/0", None),
        ("", None),
    ],
)
def test_parse_progress(line, expected):
    assert parse_progress(line) == expected


@pytest.mark.asyncio
async def test_nonzero_exit_raises_composition_error(tmp_path):
    # run the current interpreter instead of npx so no Node toolchain is needed
    compositor = RemotionCompositor(
        entry_point="src/remotion/index.ts",
        bundle_dir=str(tmp_path / "bundle"),
        npx_executable=sys.executable,
    )

    with pytest.raises(CompositionError) as exc_info:
        await compositor._run(["-c", "import sys; sys.stderr.write('bad props'); sys.exit(3)"])

    assert "exited with code 3" in str(exc_info.value)
    assert "bad props" in str(exc_info.value)


@pytest.mark.asyncio
async def test_run_streams_progress_lines(tmp_path):
    compositor = RemotionCompositor(
        entry_point="src/remotion/index.ts",
        bundle_dir=str(tmp_path / "bundle"),
        npx_executable=sys.executable,
    )
    lines = []
    script = "import sys; sys.stdout.write('Rendered 1/4\\rRendered 2/4\\rRendered 4/4\\n')"

    await compositor._run(["-c", script], on_line=lines.append)

    assert lines == ["Rendered 1/4", "Rendered 2/4", "Rendered 4/4"]


@pytest.mark.asyncio
async def test_missing_executable_raises_composition_error(tmp_path):
    compositor = RemotionCompositor(
        entry_point="src/remotion/index.ts",
        bundle_dir=str(tmp_path / "bundle"),
        npx_executable=str(tmp_path / "no-such-npx"),
    )

    with pytest.raises(CompositionError, match="Failed to start compositor"):
        await compositor.bundle()


@pytest.mark.asyncio
async def test_cancelled_run_kills_child_process(tmp_path):
    compositor = RemotionCompositor(
        entry_point="src/remotion/index.ts",
        bundle_dir=str(tmp_path / "bundle"),
        npx_executable=sys.executable,
    )
    pid_file = tmp_path / "child.pid"
    script = (
        "import os, time; "
        f"f = open({str(pid_file)!r}, 'w'); f.write(str(os.getpid())); f.close(); "
        "time.sleep(30)"
    )

    task = asyncio.create_task(compositor._run(["-c", script]))
    for _ in range(100):
        if pid_file.exists() and pid_file.read_text():
            break
        await asyncio.sleep(0.05)
    pid = int(pid_file.read_text())

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)

"""
Compositor adapters.

The compositor is a black box that turns a composition id plus per-scene
props into a video file. `RemotionCompositor` drives the Remotion CLI in a
subprocess and reports fractional progress as it renders.
"""

import abc
import asyncio
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from shared.errors import CompositionError
from shared.logging import get_logger

logger = get_logger("compositor")

ProgressCallback = Callable[[float], None]

RENDERED_FRAMES_PATTERN = re.compile(r"Rendered\s+(\d+)\s*/\s*(\d+)")
STDERR_TAIL_CHARS = 2000


class Compositor(abc.ABC):
    """Scene-to-pixel engine contract."""

    @abc.abstractmethod
    async def bundle(self) -> str:
        """Prepare the compositor and return a handle (e.g. a serve location)."""

    @abc.abstractmethod
    async def render(
        self,
        bundle_location: str,
        composition_id: str,
        input_props: Dict[str, Any],
        output_path: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """Render a composition to `output_path` and return the written path."""


def parse_progress(line: str) -> Optional[float]:
    """Turn a `Rendered 120/900` style line into a 0.0-1.0 fraction."""
    match = RENDERED_FRAMES_PATTERN.search(line)
    if not match:
        return None
    done, total = int(match.group(1)), int(match.group(2))
    if total <= 0:
        return None
    return min(done / total, 1.0)


class RemotionCompositor(Compositor):
    """Remotion CLI driven through `npx`."""

    def __init__(
        self,
        entry_point: str,
        bundle_dir: str,
        npx_executable: str = "npx",
        codec: str = "h264",
        cwd: Optional[str] = None
    ):
        self.entry_point = entry_point
        self.bundle_dir = bundle_dir
        self.npx_executable = npx_executable
        self.codec = codec
        self.cwd = cwd

    async def bundle(self) -> str:
        logger.info("Creating Remotion bundle", extra={"entry_point": self.entry_point})
        await self._run(
            ["remotion", "bundle", self.entry_point, "--out-dir", self.bundle_dir]
        )
        logger.info("Remotion bundle created", extra={"location": self.bundle_dir})
        return self.bundle_dir

    async def render(
        self,
        bundle_location: str,
        composition_id: str,
        input_props: Dict[str, Any],
        output_path: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        fd, props_path = tempfile.mkstemp(suffix=".json", prefix="props-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(input_props, f)

            await self._run(
                [
                    "remotion", "render", bundle_location, composition_id, output_path,
                    f"--props={props_path}",
                    f"--codec={self.codec}",
                ],
                on_line=self._progress_reader(on_progress),
            )
        finally:
            try:
                os.unlink(props_path)
            except OSError as e:
                logger.warning(f"Failed to delete props file: {str(e)}")

        if not Path(output_path).exists():
            raise CompositionError(f"Render finished without writing {output_path}")
        return output_path

    @staticmethod
    def _progress_reader(on_progress: Optional[ProgressCallback]):
        def handle(line: str) -> None:
            if on_progress is None:
                return
            fraction = parse_progress(line)
            if fraction is not None:
                on_progress(fraction)
        return handle

    async def _run(self, args: List[str], on_line: Optional[Callable[[str], None]] = None) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                self.npx_executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as e:
            raise CompositionError(f"Failed to start compositor: {str(e)}") from e

        async def pump_stdout() -> None:
            buffer = ""
            while True:
                chunk = await process.stdout.read(4096)
                if not chunk:
                    break
                buffer += chunk.decode("utf-8", errors="replace")
                # progress lines are redrawn with carriage returns
                *lines, buffer = re.split(r"[\r\n]", buffer)
                for line in lines:
                    if line and on_line is not None:
                        on_line(line)
            if buffer and on_line is not None:
                on_line(buffer)

        stdout_task = asyncio.create_task(pump_stdout())
        try:
            stderr = await process.stderr.read()
            await stdout_task
            return_code = await process.wait()
        finally:
            # cancelled or failed while the child is still running
            stdout_task.cancel()
            if process.returncode is None:
                logger.warning(
                    "Killing compositor process",
                    extra={"pid": process.pid, "command": " ".join(args[:2])}
                )
                process.kill()
                await process.wait()

        if return_code != 0:
            tail = stderr.decode("utf-8", errors="replace")[-STDERR_TAIL_CHARS:]
            raise CompositionError(
                f"{' '.join(args[:2])} exited with code {return_code}: {tail.strip()}"
            )

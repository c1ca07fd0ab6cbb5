"""
External Command Runner
Runs database tools as subprocesses with timeouts, captured output and live progress
"""
import asyncio
import logging
import re
import shlex
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .exceptions import ProcessError, ProcessTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 600000
READ_CHUNK_SIZE = 4096

_CREDENTIALS_RE = re.compile(r"(mongodb(?:\+srv)?://[^:/@\s]+:)[^@\s]+@")


def mask_credentials(text: str) -> str:
    """Hide passwords embedded in MongoDB connection strings"""
    return _CREDENTIALS_RE.sub(r"\1****@", text)


def format_command(argv: Sequence[str]) -> str:
    return mask_credentials(" ".join(shlex.quote(arg) for arg in argv))


@dataclass
class CommandResult:
    """Captured output of a finished command"""
    stdout: str
    stderr: str
    execution_time_ms: int
    returncode: int = 0


class CommandRunner:
    """
    Runs one external command at a time per call

    Output of both pipes is read concurrently while the process runs, so
    progress bars printed by mongodump/mongorestore reach the log as they
    arrive instead of after the process exits.
    """

    def __init__(self, default_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.default_timeout_ms = default_timeout_ms

    async def run(self,
                  argv: Sequence[str],
                  description: str,
                  timeout_ms: Optional[int] = None,
                  stream_progress: bool = False) -> CommandResult:
        """Run a command and wait for it to exit or time out"""
        timeout_ms = timeout_ms or self.default_timeout_ms
        logger.info(f"🔧 {description}...")
        logger.info(f"   Command: {format_command(argv)}")
        logger.info(f"   Timeout: {timeout_ms / 1000:.0f}s")

        start_time = time.time()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            logger.error(f"💥 {description} could not start: {e}")
            raise ProcessError(description, 127, str(e)) from e

        stdout_chunks: List[str] = []
        stderr_chunks: List[str] = []

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    self._pump(process.stdout, stdout_chunks, stream_progress),
                    self._pump(process.stderr, stderr_chunks, stream_progress),
                    process.wait()
                ),
                timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.error(f"⏰ {description} timed out after {timeout_ms / 1000:.0f}s")
            raise ProcessTimeout(description, timeout_ms)
        except asyncio.CancelledError:
            await self._kill(process)
            logger.warning(f"🛑 {description} cancelled")
            raise

        execution_time = int((time.time() - start_time) * 1000)
        stdout = "".join(stdout_chunks)
        stderr = "".join(stderr_chunks)

        if process.returncode != 0:
            logger.error(f"💥 {description} failed with exit code {process.returncode} after {execution_time}ms")
            if stderr.strip():
                logger.error(f"   stderr: {mask_credentials(stderr.strip())}")
            raise ProcessError(description, process.returncode, stderr)

        logger.info(f"✅ {description} completed in {execution_time}ms")
        if not stream_progress:
            if stdout.strip():
                logger.info(f"📤 Output: {stdout.strip()}")
            if stderr.strip():
                logger.warning(f"⚠️  Warning: {mask_credentials(stderr.strip())}")

        return CommandResult(
            stdout=stdout,
            stderr=stderr,
            execution_time_ms=execution_time,
            returncode=process.returncode
        )

    async def _pump(self, stream: asyncio.StreamReader, chunks: List[str], stream_progress: bool):
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            if not data:
                break
            text = data.decode(errors="replace")
            chunks.append(text)
            if stream_progress and "[" in text and "]" in text:
                for line in text.splitlines():
                    if "[" in line and "]" in line:
                        logger.info(f"   📊 {line.strip()}")

    async def _kill(self, process: asyncio.subprocess.Process):
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()

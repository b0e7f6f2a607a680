"""Docker Compose backed server controller."""

import asyncio
from pathlib import Path
from typing import List, Tuple

import httpx

from .._utils import logger
from ..config import ServerConfig
from .base import ServerController, ServerControlError


class DockerComposeController(ServerController):
    """Control one compose service and probe its HTTP endpoints."""

    def __init__(self, compose_file: Path, config: ServerConfig):
        self.compose_file = Path(compose_file)
        self.config = config
        self.service = config.service_name

    def _compose_args(self, *args: str) -> List[str]:
        return ["docker", "compose", "-f", str(self.compose_file), *args]

    async def _run(self, *args: str) -> Tuple[int, str, str]:
        cmd = self._compose_args(*args)
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ServerControlError(f"docker executable not found: {e}") from e
        stdout, stderr = await process.communicate()
        return process.returncode, stdout.decode(errors="replace"), stderr.decode(errors="replace")

    async def _checked(self, action: str, *args: str) -> None:
        returncode, _, stderr = await self._run(*args)
        if returncode != 0:
            raise ServerControlError(f"Failed to {action} EventStore: {stderr.strip() or returncode}")

    async def is_running(self) -> bool:
        returncode, stdout, _ = await self._run("ps", "--status", "running", "-q", self.service)
        return returncode == 0 and bool(stdout.strip())

    async def request_stop(self) -> None:
        await self._checked("stop", "stop", self.service)

    async def kill(self) -> None:
        await self._checked("kill", "kill", self.service)

    async def start(self) -> None:
        logger.info("Starting EventStore...")
        await self._checked("start", "start", self.service)
        logger.info("EventStore start command executed")

    async def _probe(self, url: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
                return True
        except httpx.HTTPError as e:
            logger.debug(f"Probe {url} failed: {e}")
            return False

    async def healthy(self) -> bool:
        return await self._probe(self.config.health_url)

    async def stats_reachable(self) -> bool:
        return await self._probe(self.config.stats_url)

"""Tests for DockerComposeController with subprocess and HTTP mocked out."""

import httpx
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from eventstore_backup.config import ServerConfig
from eventstore_backup.server import DockerComposeController, ServerControlError


def _process(returncode=0, stdout=b"", stderr=b""):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    return process


@pytest.fixture
def docker():
    return DockerComposeController(Path("/compose/docker-compose.yml"), ServerConfig())


@pytest.mark.asyncio
async def test_is_running_uses_compose_ps(docker):
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process(stdout=b"abc123\n"))) as exec_mock:
        assert await docker.is_running() is True

    args = exec_mock.call_args.args
    assert args == (
        "docker", "compose", "-f", "/compose/docker-compose.yml",
        "ps", "--status", "running", "-q", "eventstore.db",
    )


@pytest.mark.asyncio
async def test_is_running_false_when_no_container(docker):
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process(stdout=b""))):
        assert await docker.is_running() is False


@pytest.mark.asyncio
async def test_start_failure_raises(docker):
    failing = _process(returncode=1, stderr=b"no such service: eventstore.db")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=failing)):
        with pytest.raises(ServerControlError, match="no such service"):
            await docker.start()


@pytest.mark.asyncio
async def test_missing_docker_binary(docker):
    with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("docker"))):
        with pytest.raises(ServerControlError, match="docker executable not found"):
            await docker.kill()


@pytest.mark.asyncio
async def test_healthy_probe():
    def handler(request):
        if request.url.path == "/health/live":
            return httpx.Response(204)
        return httpx.Response(500)

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        return real_client(transport=transport, **kwargs)

    docker = DockerComposeController(Path("/compose.yml"), ServerConfig())
    with patch("eventstore_backup.server.docker.httpx.AsyncClient", side_effect=client_factory):
        assert await docker.healthy() is True
        assert await docker.stats_reachable() is False


@pytest.mark.asyncio
async def test_probe_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        return real_client(transport=transport, **kwargs)

    docker = DockerComposeController(Path("/compose.yml"), ServerConfig())
    with patch("eventstore_backup.server.docker.httpx.AsyncClient", side_effect=client_factory):
        assert await docker.healthy() is False

"""Server controller abstraction."""

from abc import ABC, abstractmethod

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from .._utils import logger


class ServerControlError(Exception):
    """The container runtime rejected a start/stop/kill request."""
    pass


class ServerController(ABC):
    """Capability interface over the database server's lifecycle.

    Implementations provide the primitive operations; the bounded waits for
    shutdown and health are shared here.
    """

    @abstractmethod
    async def is_running(self) -> bool:
        """Whether the server process/container is up."""
        pass

    @abstractmethod
    async def request_stop(self) -> None:
        """Ask the server to stop gracefully. Does not wait."""
        pass

    @abstractmethod
    async def kill(self) -> None:
        """Force-terminate the server."""
        pass

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def healthy(self) -> bool:
        """Liveness endpoint answers successfully."""
        pass

    @abstractmethod
    async def stats_reachable(self) -> bool:
        """Secondary diagnostics endpoint answers successfully."""
        pass

    async def stop(self, timeout: float = 30.0, poll_interval: float = 1.0) -> bool:
        """Stop the server, escalating to kill after timeout.

        Returns:
            True if the server was running before the call
        """
        if not await self.is_running():
            logger.info("EventStore was not running")
            return False

        logger.info("Stopping EventStore...")
        await self.request_stop()

        if not await self._wait_until(self._is_stopped, timeout, poll_interval):
            logger.warning("EventStore did not stop gracefully, forcing stop")
            await self.kill()

        logger.info("EventStore stopped successfully")
        return True

    async def wait_healthy(self, timeout: float = 60.0, interval: float = 2.0) -> bool:
        logger.info("Waiting for EventStore to become healthy...")
        return await self._wait_until(self.healthy, timeout, interval)

    async def _is_stopped(self) -> bool:
        return not await self.is_running()

    async def _wait_until(self, predicate, timeout: float, interval: float) -> bool:
        retrying = AsyncRetrying(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(interval),
            retry=retry_if_result(lambda ok: ok is False),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    result = await predicate()
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(result)
        except RetryError:
            return False
        return True

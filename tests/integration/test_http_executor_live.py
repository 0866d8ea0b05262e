"""Integration tests for HttpExecutor against live local servers."""

from __future__ import annotations

import time

import pytest

from benchforge._internal.config import TransportSettings
from benchforge._internal.errors import ResponseDrainError, TransportError
from benchforge.engine.executor import BenchRequest, HttpExecutor
from benchforge.metrics.models import ClientResult


def _settings(**overrides: object) -> TransportSettings:
    values: dict[str, object] = {"connect_timeout": 2.0, "read_timeout": 2.0, "write_timeout": 2.0}
    values.update(overrides)
    return TransportSettings(**values)  # type: ignore[arg-type]


@pytest.mark.timeout(15)
class TestHttpExecutorLive:
    async def test_get_ok(self, target_server: str):
        result = ClientResult()
        async with HttpExecutor(result, _settings()) as executor:
            response = await executor.send(BenchRequest(method="GET", url=f"{target_server}/ok"))
            assert response.status == 200
            assert await response.drain() == 2

        assert result.read_throughput > 2
        assert result.write_throughput > 0

    async def test_post_sends_body_and_headers(
        self, recording_server: tuple[str, list[dict[str, object]]]
    ):
        base_url, seen = recording_server
        body = b'{"hello": "world"}'

        async with HttpExecutor(ClientResult(), _settings()) as executor:
            response = await executor.send(
                BenchRequest(
                    method="POST",
                    url=f"{base_url}/echo",
                    body=body,
                    headers={"Connection": "close"},
                )
            )
            await response.drain()

        assert len(seen) == 1
        assert seen[0]["method"] == "POST"
        assert seen[0]["body"] == body
        headers = seen[0]["headers"]
        assert isinstance(headers, dict)
        assert headers["connection"] == "close"
        assert headers["content-length"] == str(len(body))
        assert headers["host"] == base_url.removeprefix("http://")

    async def test_keep_alive_header_on_every_request(
        self, recording_server: tuple[str, list[dict[str, object]]]
    ):
        base_url, seen = recording_server
        result = ClientResult()

        async with HttpExecutor(result, _settings()) as executor:
            for _ in range(3):
                response = await executor.send(
                    BenchRequest(
                        method="GET",
                        url=f"{base_url}/echo",
                        headers={"Connection": "keep-alive"},
                    )
                )
                await response.drain()
                assert response.status == 200

        assert len(seen) == 3
        assert all(s["headers"]["connection"] == "keep-alive" for s in seen)  # type: ignore[index]

    async def test_without_reuse_every_request_succeeds(self, target_server: str):
        async with HttpExecutor(ClientResult(), _settings(reuse_connections=False)) as executor:
            for _ in range(3):
                response = await executor.send(BenchRequest(method="GET", url=f"{target_server}/ok"))
                await response.drain()
                assert response.status == 200

    async def test_connection_refused(self, refused_url: str):
        async with HttpExecutor(ClientResult(), _settings()) as executor:
            with pytest.raises(TransportError) as exc_info:
                await executor.send(BenchRequest(method="GET", url=refused_url))

        assert not isinstance(exc_info.value, ResponseDrainError)

    async def test_read_timeout_is_transport_error(self, target_server: str):
        result = ClientResult()
        start = time.monotonic()

        async with HttpExecutor(result, _settings(read_timeout=0.2)) as executor:
            with pytest.raises(TransportError, match="ReadTimeout"):
                await executor.send(
                    BenchRequest(method="GET", url=f"{target_server}/stall?delay=2")
                )

        assert time.monotonic() - start < 1.5
        assert result.read_throughput == 0

    async def test_slow_but_steady_body_never_times_out(self, target_server: str):
        """Idle timeout per read: 0.6s of trickling bytes with a 0.3s read timeout."""
        result = ClientResult()
        url = f"{target_server}/trickle?chunks=6&interval=0.1"

        async with HttpExecutor(result, _settings(read_timeout=0.3)) as executor:
            response = await executor.send(BenchRequest(method="GET", url=url))
            assert await response.drain() == 600

        assert result.read_throughput > 600

    async def test_truncated_body_is_drain_error(self, truncating_server: str):
        async with HttpExecutor(ClientResult(), _settings()) as executor:
            response = await executor.send(BenchRequest(method="GET", url=truncating_server))
            assert response.status == 200
            with pytest.raises(ResponseDrainError):
                await response.drain()

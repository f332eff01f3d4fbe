"""Shared fixtures."""
import pytest
from unittest.mock import patch

# A public address (example.com) so URL safety checks pass without real DNS
PUBLIC_IP = "93.184.216.34"


@pytest.fixture(autouse=True)
def public_dns():
    """Resolve every hostname to a public IP unless a test patches it again."""
    with patch("socket.gethostbyname", return_value=PUBLIC_IP) as mock_resolve:
        yield mock_resolve


class FakeBackend:
    """Scripted generation backend recording the messages it receives."""

    def __init__(
        self,
        chunks=(),
        stream_error=None,
        completion="Buffered answer",
        complete_error=None,
        hold_after_first=None,
    ):
        self.chunks = list(chunks)
        self.stream_error = stream_error
        self.completion = completion
        self.complete_error = complete_error
        self.hold_after_first = hold_after_first
        self.stream_calls = []
        self.complete_calls = []

    async def stream(self, messages):
        self.stream_calls.append(list(messages))
        for i, chunk in enumerate(self.chunks):
            yield chunk
            if i == 0 and self.hold_after_first is not None:
                await self.hold_after_first.wait()
        if self.stream_error is not None:
            raise self.stream_error

    async def complete(self, messages):
        self.complete_calls.append(list(messages))
        if self.complete_error is not None:
            raise self.complete_error
        return self.completion


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend

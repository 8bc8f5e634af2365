import asyncio

import pytest

from conftest import StubEmotionProvider
from mindmate.errors import InvalidInputError
from mindmate.services.fallback import FallbackChain


def test_chain_needs_a_provider():
    with pytest.raises(ValueError):
        FallbackChain("empty", [])


async def test_first_success_wins():
    first, second = StubEmotionProvider(result="a"), StubEmotionProvider(result="b")
    chain = FallbackChain("t", [first, second])
    assert await chain.run(lambda p: p.classify("x")) == "a"
    assert second.calls == 0


async def test_errors_and_timeouts_move_down_the_chain():
    broken = StubEmotionProvider(error=KeyError("missing"))
    slow = StubEmotionProvider(result="late", delay=0.5)
    last = StubEmotionProvider(result="ok")
    chain = FallbackChain("t", [broken, slow, last], timeout_s=0.05)
    assert await chain.run(lambda p: p.classify("x")) == "ok"
    assert (broken.calls, slow.calls, last.calls) == (1, 1, 1)


async def test_passthrough_errors_propagate_immediately():
    invalid = StubEmotionProvider(error=InvalidInputError("blank"))
    backup = StubEmotionProvider(result="never")
    chain = FallbackChain("t", [invalid, backup], passthrough=(InvalidInputError,))
    with pytest.raises(InvalidInputError):
        await chain.run(lambda p: p.classify("x"))
    assert backup.calls == 0


async def test_last_timeout_is_raised_when_all_fail():
    chain = FallbackChain("t", [StubEmotionProvider(result="late", delay=0.5)], timeout_s=0.01)
    with pytest.raises(asyncio.TimeoutError):
        await chain.run(lambda p: p.classify("x"))


async def test_chain_emptied_after_construction_raises_runtime_error():
    chain = FallbackChain("t", [StubEmotionProvider(result="a")])
    chain.providers = []
    with pytest.raises(RuntimeError, match="no provider ran"):
        await chain.run(lambda p: p.classify("x"))

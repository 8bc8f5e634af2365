"""
Ordered provider chain with a uniform timeout/fallback wrapper.

  chain = FallbackChain("emotion", [remote, lexicon], timeout_s=8.0)
  result = await chain.run(lambda p: p.classify(text))

Each provider gets one attempt bounded by ``timeout_s``.  Any exception
(or timeout) is logged and the next provider is tried; the last provider's
error is re-raised only if every provider failed.  Providers listed in
``passthrough`` errors (caller mistakes) propagate immediately.
"""
from __future__ import annotations
import asyncio
import time
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from mindmate.utils.logging import logger

P = TypeVar("P")
T = TypeVar("T")


class FallbackChain(Generic[P, T]):
    def __init__(
        self,
        name: str,
        providers: Sequence[P],
        timeout_s: Optional[float] = None,
        passthrough: Tuple[Type[BaseException], ...] = (),
    ):
        if not providers:
            raise ValueError(f"{name}: fallback chain needs at least one provider")
        self.name = name
        self.providers: List[P] = list(providers)
        self.timeout_s = timeout_s
        self.passthrough = passthrough

    async def run(self, call: Callable[[P], Awaitable[T]]) -> T:
        last_error: Optional[BaseException] = None
        for provider in self.providers:
            label = getattr(provider, "name", type(provider).__name__)
            t0 = time.time()
            try:
                if self.timeout_s is None:
                    return await call(provider)
                return await asyncio.wait_for(call(provider), timeout=self.timeout_s)
            except self.passthrough:
                raise
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(
                    f"{self.name}: {label} timed out after {self.timeout_s}s — falling back",
                    extra={"chain": self.name, "provider": label},
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    f"{self.name}: {label} failed — {type(e).__name__}: {e}",
                    extra={
                        "chain": self.name,
                        "provider": label,
                        "elapsed_ms": round((time.time() - t0) * 1000, 1),
                    },
                )
        if last_error is None:
            raise RuntimeError(f"{self.name}: no provider ran")
        raise last_error

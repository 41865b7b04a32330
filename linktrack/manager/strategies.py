from __future__ import annotations
"""
Strategies for short-code generation in linktrack.

Provided strategies:
- RandomStrategy: Random Base62 of length L (default 6)
- SequentialStrategy: monotonically increasing integer -> Base62, left-padded to L
- HMACSHA256Strategy: keyed HMAC-SHA256(secret, seed|attempt) -> Base62 -> truncate to L

Every strategy takes an `attempt` number. The registry's reservation loop bumps it
on each collision, so keyed strategies derive a fresh candidate per retry and random
ones simply draw again.

Configuration (via linktrack.config.settings):
- CODE_STRATEGY: "random" (default), "sequential", "hmac-sha256"
- CODE_LENGTH: default length (6; clamped 4..32)
- CODE_SECRET: secret for HMACSHA256Strategy
- SEQ_START: starting integer for SequentialStrategy

LLM Prompt Example:
    "Compare random, counter-based and keyed-hash short codes: which need a
    uniqueness check, which leak creation order, and how retries differ."
"""

import hashlib
import hmac
import itertools
import logging
import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from linktrack.config import settings

log = logging.getLogger(__name__)

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE62_BASE = len(BASE62_ALPHABET)


def base62_encode(num: int) -> str:
    """
    Convert a non-negative integer to a Base62 string.
    0 -> "0", 61 -> "Z", 62 -> "10"
    """
    if num < 0:
        raise ValueError("num must be non-negative")
    if num == 0:
        return "0"
    out = []
    while num > 0:
        num, rem = divmod(num, _BASE62_BASE)
        out.append(BASE62_ALPHABET[rem])
    return "".join(reversed(out))


def _safe_len(length: Optional[int]) -> int:
    """Resolve desired code length from arg or config, clamped to [4, 32]."""
    L = int(length) if length is not None else int(settings.CODE_LENGTH)
    return max(4, min(32, L))


class BaseStrategy(ABC):
    """Abstract base for code generation strategies."""

    # Monotonic strategies never offer the same candidate twice, so the registry
    # advances past taken codes without spending an attempt.
    skips_taken = False

    @abstractmethod
    def generate(self, seed: str, *, length: Optional[int] = None, attempt: int = 0) -> str:
        """
        Produce a candidate short code.

        - seed: the destination URL; only keyed strategies use it
        - length: desired code length
        - attempt: 0 on the first try, incremented after every collision
        """
        raise NotImplementedError  # pragma: no cover


@dataclass(frozen=True)
class RandomStrategy(BaseStrategy):
    """Random Base62 codes; uniqueness comes from the registry's atomic reservation."""

    def generate(self, seed: str, *, length: Optional[int] = None, attempt: int = 0) -> str:
        L = _safe_len(length)
        rng = random.SystemRandom()
        return "".join(rng.choice(BASE62_ALPHABET) for _ in range(L))


@dataclass(frozen=True)
class HMACSHA256Strategy(BaseStrategy):
    """Keyed deterministic HMAC-SHA256(secret, seed|attempt) -> Base62 -> truncate."""
    secret: str

    def generate(self, seed: str, *, length: Optional[int] = None, attempt: int = 0) -> str:
        L = _safe_len(length)
        payload = seed if attempt == 0 else f"{seed}|{attempt}"
        digest = hmac.new(self.secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).digest()
        return base62_encode(int.from_bytes(digest, "big"))[:L]


@dataclass
class SequentialStrategy(BaseStrategy):
    """
    Counter-based codes:
    - process-local monotonically increasing counter
    - next integer encoded to Base62 and left-padded to the requested length
    - collision-free within one process; after a restart the counter replays
      codes already stored, and the registry walks past them
    """
    skips_taken = True

    start: int = 3_500_000
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _counter: itertools.count = field(init=False, repr=False)

    def __post_init__(self):
        self._counter = itertools.count(self.start)

    def generate(self, seed: str, *, length: Optional[int] = None, attempt: int = 0) -> str:
        with self._lock:
            n = next(self._counter)
        return base62_encode(n).rjust(_safe_len(length), "0")


STRATEGY_REGISTRY: Dict[str, Type[BaseStrategy]] = {
    "random": RandomStrategy,
    "rand": RandomStrategy,
    "sequential": SequentialStrategy,
    "seq": SequentialStrategy,
    "hmac": HMACSHA256Strategy,
    "hmac-sha256": HMACSHA256Strategy,
}


def get_strategy_from_config(name: Optional[str] = None) -> BaseStrategy:
    """
    Resolve the active strategy from parameter or settings.CODE_STRATEGY.
    Unknown names fall back to random.
    """
    key = (name or settings.CODE_STRATEGY or "random").strip().lower()
    cls = STRATEGY_REGISTRY.get(key)
    if cls is None:
        log.warning("Unknown code strategy %r; falling back to random", key)
        cls = RandomStrategy
    log.debug("Using code strategy: %s -> %s", key, cls.__name__)

    if cls is HMACSHA256Strategy:
        return HMACSHA256Strategy(secret=settings.CODE_SECRET)
    if cls is SequentialStrategy:
        return SequentialStrategy(start=int(settings.SEQ_START))
    return cls()

import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

# Process-wide so that ids stay unique across registries
_SEQUENCE = itertools.count()
_SEQUENCE_LOCK = threading.Lock()


def next_sequence() -> int:
    with _SEQUENCE_LOCK:
        return next(_SEQUENCE)


@dataclass(frozen=True)
class RequestIdentity:
    """A base key plus the sequence number of one in-flight execution."""

    base_key: str
    sequence: int

    @property
    def request_id(self) -> str:
        return f"{self.base_key}#{self.sequence}"

    @classmethod
    def create(cls, base_key: str) -> "RequestIdentity":
        return cls(base_key, next_sequence())


class CancellationToken:
    """
    Write-once cancellation flag shared between a registry entry and the
    computation it guards.

    The flag lives in a one-element uint8 array so that Numba kernels can
    poll ``token.buffer[0]`` from inside their row loops.
    """

    __slots__ = ("_flag",)

    def __init__(self, cancelled: bool = False):
        self._flag = np.zeros(1, dtype=np.uint8)
        if cancelled:
            self._flag[0] = 1

    def cancel(self) -> None:
        self._flag[0] = 1

    @property
    def cancelled(self) -> bool:
        return bool(self._flag[0])

    @property
    def buffer(self) -> np.ndarray:
        return self._flag

    def __repr__(self):
        return f"CancellationToken(cancelled={self.cancelled})"


class CancellationRegistry:
    """
    Maps unique request ids to cancellation tokens.

    Registering a request cancels every live request that shares its base
    key, so the most recently registered request is the only one that can
    finish with a result.
    """

    def __init__(self, name: str = "analysis"):
        self.name = name
        self._tokens: dict[str, CancellationToken] = {}
        self._lock = threading.Lock()

    def register(self, request_id: str, base_key: str) -> CancellationToken:
        token = CancellationToken()
        prefix = f"{base_key}#"
        with self._lock:
            for key, old_token in self._tokens.items():
                if key == base_key or key.startswith(prefix):
                    old_token.cancel()
                    logger.debug(f"[{self.name}] Cancelled stale request: {key}")
            self._tokens[request_id] = token
        return token

    def unregister(self, request_id: str) -> None:
        with self._lock:
            self._tokens.pop(request_id, None)

    @contextmanager
    def request(self, base_key: str):
        """
        Registers a fresh identity for ``base_key`` and always unregisters it
        when the block exits, whatever the outcome.

        Yields ``(identity, token)``.
        """
        identity = RequestIdentity.create(base_key)
        token = self.register(identity.request_id, base_key)
        try:
            yield identity, token
        finally:
            self.unregister(identity.request_id)

    def is_registered(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._tokens

    def __len__(self):
        with self._lock:
            return len(self._tokens)

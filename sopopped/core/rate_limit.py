# sopopped/core/rate_limit.py
"""
File-based per-client rate limiting.

One small JSON file per (client, scope) holds {"count": n, "start": t}.
The read-modify-write cycle runs under an exclusive advisory lock
(fcntl.flock), so concurrent workers on the same host count correctly.

Window semantics:
  - the first hit opens a window at `start`
  - the window is over once start + window <= now; the next hit opens
    a fresh window with count 1
  - hits 1..limit inside a window are allowed, every further hit is
    rejected (rejected hits still count)

Filesystem errors fail open: the request is allowed and the error is
logged.
"""

import fcntl
import hashlib
import json
import logging
import os
import time
from functools import lru_cache
from typing import Callable

from fastapi import Depends, Request

from sopopped.core.config import get_settings
from sopopped.core.errors import RateLimited

logger = logging.getLogger(__name__)


class FileRateLimiter:
    def __init__(
        self,
        directory: str,
        limit: int,
        window: int,
        clock: Callable[[], float] = time.time,
    ):
        self.directory = directory
        self.limit = limit
        self.window = window
        self.clock = clock

    def _path(self, client_id: str, scope: str) -> str:
        digest = hashlib.md5(f"{client_id}_{scope}".encode("utf-8")).hexdigest()
        return os.path.join(self.directory, f"{digest}.json")

    def hit(self, client_id: str, scope: str) -> bool:
        """
        Record one request and report whether it is within the limit.
        """
        now = int(self.clock())
        try:
            os.makedirs(self.directory, mode=0o700, exist_ok=True)
            fd = os.open(self._path(client_id, scope), os.O_RDWR | os.O_CREAT, 0o600)
        except OSError:
            logger.warning("Rate limiter unavailable for scope %s", scope, exc_info=True)
            return True

        with os.fdopen(fd, "r+", encoding="utf-8") as fp:
            fcntl.flock(fp, fcntl.LOCK_EX)
            try:
                state = {"count": 0, "start": now}
                contents = fp.read()
                if contents:
                    try:
                        decoded = json.loads(contents)
                    except ValueError:
                        decoded = None
                    if _is_window_state(decoded):
                        state = decoded

                if state["start"] + self.window <= now:
                    state = {"count": 0, "start": now}

                state["count"] += 1

                fp.seek(0)
                fp.truncate()
                fp.write(json.dumps(state))
                fp.flush()
            finally:
                fcntl.flock(fp, fcntl.LOCK_UN)

        return state["count"] <= self.limit


def _is_window_state(decoded: object) -> bool:
    return (
        isinstance(decoded, dict)
        and {"count", "start"} <= decoded.keys()
        and all(isinstance(decoded[key], int) for key in ("count", "start"))
    )


@lru_cache
def get_rate_limiter() -> FileRateLimiter:
    """
    Process-wide limiter built from settings.

    Tests override this dependency with their own directory/clock.
    """
    settings = get_settings()
    return FileRateLimiter(
        directory=settings.RATE_LIMIT_DIR,
        limit=settings.RATE_LIMIT_MAX_REQUESTS,
        window=settings.RATE_LIMIT_WINDOW_SECONDS,
    )


def client_ip(request: Request) -> str:
    """
    Client identifier: first X-Forwarded-For hop, else the peer address.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


def rate_limit(scope: str):
    """
    Build a dependency that throttles one endpoint per client IP.

    Usage:

        @router.post("/login", dependencies=[Depends(rate_limit("login"))])
    """

    def _gate(
        request: Request,
        limiter: FileRateLimiter = Depends(get_rate_limiter),
    ) -> None:
        if not limiter.hit(client_ip(request), scope):
            raise RateLimited()

    return _gate

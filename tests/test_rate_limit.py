import os

import pytest

from sopopped.core.rate_limit import FileRateLimiter, get_rate_limiter
from sopopped.main import app


class FakeClock:
    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_limit_allowed_then_rejected_then_reset(tmp_path):
    clock = FakeClock()
    limiter = FileRateLimiter(str(tmp_path), limit=3, window=60, clock=clock)

    assert [limiter.hit("10.0.0.1", "login") for _ in range(3)] == [True, True, True]
    assert limiter.hit("10.0.0.1", "login") is False

    clock.now += 59
    assert limiter.hit("10.0.0.1", "login") is False

    clock.now += 1
    assert limiter.hit("10.0.0.1", "login") is True


def test_clients_and_scopes_are_counted_separately(tmp_path):
    limiter = FileRateLimiter(str(tmp_path), limit=1, window=60, clock=FakeClock())

    assert limiter.hit("10.0.0.1", "login") is True
    assert limiter.hit("10.0.0.2", "login") is True
    assert limiter.hit("10.0.0.1", "check_user_exists") is True
    assert limiter.hit("10.0.0.1", "login") is False


def test_state_survives_new_limiter_instances(tmp_path):
    clock = FakeClock()

    assert FileRateLimiter(str(tmp_path), limit=1, window=60, clock=clock).hit("ip", "s")
    assert not FileRateLimiter(str(tmp_path), limit=1, window=60, clock=clock).hit("ip", "s")


def test_corrupt_state_file_starts_a_new_window(tmp_path):
    limiter = FileRateLimiter(str(tmp_path), limit=1, window=60, clock=FakeClock())
    limiter.hit("ip", "s")
    path = limiter._path("ip", "s")
    with open(path, "w") as fh:
        fh.write("garbage")

    assert limiter.hit("ip", "s") is True


@pytest.mark.parametrize("contents", ['{"count": 3}', '{"start": 0}', '{"count": "3", "start": 0}'])
def test_incomplete_state_file_starts_a_new_window(tmp_path, contents):
    limiter = FileRateLimiter(str(tmp_path), limit=1, window=60, clock=FakeClock())
    with open(limiter._path("ip", "s"), "w") as fh:
        fh.write(contents)

    assert limiter.hit("ip", "s") is True
    assert limiter.hit("ip", "s") is False


def test_unusable_directory_fails_open(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    limiter = FileRateLimiter(os.path.join(str(blocker), "rate"), limit=0, window=60)

    assert limiter.hit("ip", "s") is True


def test_endpoint_returns_429_after_limit(client, tmp_path):
    app.dependency_overrides[get_rate_limiter] = lambda: FileRateLimiter(
        str(tmp_path / "tight"), limit=2, window=60, clock=FakeClock()
    )

    codes = [
        client.get("/api/auth/check-email", params={"email": "a@sopopped.ph"}).status_code
        for _ in range(3)
    ]

    assert codes == [200, 200, 429]
    last = client.get("/api/auth/check-email", params={"email": "a@sopopped.ph"})
    assert last.json() == {"success": False, "error": "rate_limited"}


def test_forwarded_for_identifies_client(client, tmp_path):
    app.dependency_overrides[get_rate_limiter] = lambda: FileRateLimiter(
        str(tmp_path / "tight"), limit=1, window=60, clock=FakeClock()
    )
    url = "/api/auth/check-email"
    params = {"email": "a@sopopped.ph"}

    first = client.get(url, params=params, headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
    other = client.get(url, params=params, headers={"X-Forwarded-For": "203.0.113.6"})
    again = client.get(url, params=params, headers={"X-Forwarded-For": "203.0.113.5"})

    assert (first.status_code, other.status_code, again.status_code) == (200, 200, 429)

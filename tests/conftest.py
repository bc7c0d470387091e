"""
Shared fixtures for the Sentinel test-suite.
"""

import time
from datetime import datetime

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import WatchError

from sentinel_oauth.clients import ClientManager, MemoryClientRepository
from sentinel_oauth.common.utils import get_current_time
from sentinel_oauth.crypto import BcryptPasswordCryptoProvider, RsaAsymmetricCryptoProvider
from sentinel_oauth.tokenstore import MemoryTokenRepository, RedisTokenRepository, RedisTokenRepositoryConfig


def _parse_bound(value):
    if isinstance(value, str) and value.startswith("("):
        return float(value[1:]), True
    return float(value), False


class FakePipeline:
    """
    Queues commands and runs them back to back, like MULTI/EXEC.

    After ``watch`` the pipeline answers ``exists`` immediately until
    ``multi``; ``execute`` fails with WatchError if a watched key was
    written in between.
    """

    def __init__(self, redis):
        self._redis = redis
        self._commands = []
        self._watched = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self._commands = []
        self._watched = {}

    async def watch(self, *keys):
        self._watched = {key: self._redis.versions.get(key, 0) for key in keys}

    async def exists(self, *keys):
        self._redis._check_read()
        return len([key for key in keys if self._redis._alive(key)])

    def multi(self):
        pass

    def _queue(self, name, *args, **kwargs):
        self._commands.append((name, args, kwargs))
        return self

    def hset(self, *args, **kwargs):
        return self._queue("hset", *args, **kwargs)

    def zadd(self, *args, **kwargs):
        return self._queue("zadd", *args, **kwargs)

    def expireat(self, *args, **kwargs):
        return self._queue("expireat", *args, **kwargs)

    def pexpireat(self, *args, **kwargs):
        return self._queue("pexpireat", *args, **kwargs)

    def zrem(self, *args, **kwargs):
        return self._queue("zrem", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self._queue("delete", *args, **kwargs)

    async def execute(self):
        if self._redis.fail_writes:
            raise RedisConnectionError("Connection refused")
        watched, self._watched = self._watched, {}
        if any(self._redis.versions.get(key, 0) != version for key, version in watched.items()):
            self._commands = []
            raise WatchError("Watched variable changed.")
        commands, self._commands = self._commands, []
        return [getattr(self._redis, f"_{name}")(*args, **kwargs) for name, args, kwargs in commands]


class FakeRedis:
    """
    Asyncio double for the Redis commands the token repository uses.

    Hashes honour EXPIREAT and PEXPIREAT against ``clock`` (the wall
    clock unless a test replaces it), sorted sets keep members with float
    scores. EXPIREAT takes whole seconds, as redis-py sends them.
    """

    def __init__(self):
        self.hashes = {}
        self.zsets = {}
        self.expiry = {}
        self.versions = {}
        self.clock = time.time
        self.fail_writes = False
        self.fail_reads = False
        self.closed = False

    def _check_read(self):
        if self.fail_reads:
            raise RedisConnectionError("Connection reset by peer")

    def _alive(self, key):
        expires_at = self.expiry.get(key)
        if expires_at is not None and expires_at <= self.clock():
            self.hashes.pop(key, None)
            self.expiry.pop(key, None)
        return key in self.hashes

    def _touch(self, key):
        self.versions[key] = self.versions.get(key, 0) + 1

    def _hset(self, key, mapping):
        self._touch(key)
        self.hashes.setdefault(key, {}).update(mapping)
        return len(mapping)

    def _zadd(self, name, mapping):
        zset = self.zsets.setdefault(name, {})
        added = len([member for member in mapping if member not in zset])
        zset.update(mapping)
        return added

    def _expireat(self, key, when):
        if isinstance(when, datetime):
            when = int(when.timestamp())
        if key not in self.hashes:
            return 0
        self._touch(key)
        self.expiry[key] = float(int(when))
        return 1

    def _pexpireat(self, key, when):
        if isinstance(when, datetime):
            when = int(when.timestamp() * 1000)
        if key not in self.hashes:
            return 0
        self._touch(key)
        self.expiry[key] = int(when) / 1000
        return 1

    def _zrem(self, name, *members):
        zset = self.zsets.get(name, {})
        return len([member for member in members if zset.pop(member, None) is not None])

    def _delete(self, *keys):
        removed = 0
        for key in keys:
            if self._alive(key):
                removed += 1
                self._touch(key)
            self.hashes.pop(key, None)
            self.expiry.pop(key, None)
        return removed

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def hgetall(self, key):
        self._check_read()
        if not self._alive(key):
            return {}
        return dict(self.hashes[key])

    async def zrangebyscore(self, name, min, max):
        self._check_read()
        low, low_exclusive = _parse_bound(min)
        high, high_exclusive = _parse_bound(max)
        members = sorted(self.zsets.get(name, {}).items(), key=lambda item: item[1])
        return [
            member for member, score in members
            if (score > low if low_exclusive else score >= low)
            and (score < high if high_exclusive else score <= high)
        ]

    async def zrem(self, name, *members):
        self._check_read()
        return self._zrem(name, *members)

    async def zremrangebyscore(self, name, min, max):
        self._check_read()
        zset = self.zsets.get(name, {})
        doomed = [member for member, score in zset.items() if float(min) <= score <= float(max)]
        for member in doomed:
            del zset[member]
        return len(doomed)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_repository(fake_redis):
    return RedisTokenRepository(RedisTokenRepositoryConfig(connection=fake_redis))


@pytest.fixture(params=["memory", "redis"])
def repository(request):
    """Every token repository backend, for behaviour both must share."""
    if request.param == "memory":
        return MemoryTokenRepository()
    return RedisTokenRepository(RedisTokenRepositoryConfig(connection=FakeRedis()))


@pytest.fixture
def now():
    return get_current_time()


@pytest.fixture
def password_provider():
    return BcryptPasswordCryptoProvider(default_work_factor=4)


@pytest.fixture(scope="session")
def asymmetric_provider():
    return RsaAsymmetricCryptoProvider()


@pytest.fixture
def client_repository():
    return MemoryClientRepository()


@pytest.fixture
def client_manager(password_provider, asymmetric_provider, client_repository):
    return ClientManager(
        password_provider,
        asymmetric_provider,
        client_repository,
        client_secret_work_factor=4,
    )

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import redis.asyncio as redis

from mobile.app.errors import CredentialStoreError

logger = logging.getLogger("storage.adapters")


class BaseCredentialAdapter:
    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set_many(self, values: Mapping[str, str]) -> None:
        raise NotImplementedError

    async def delete_many(self, keys: Iterable[str]) -> None:
        raise NotImplementedError


class RedisCredentialAdapter(BaseCredentialAdapter):
    def __init__(self, url: str, *, namespace: Optional[str] = None, client: Optional[Any] = None) -> None:
        self._client = client or redis.from_url(url, decode_responses=True)
        self._namespace = namespace.strip() if namespace else None

    def _qualify(self, key: str) -> str:
        if self._namespace:
            return f"{self._namespace}:{key}"
        return key

    async def get(self, key: str) -> Optional[str]:
        try:
            result = await self._client.get(self._qualify(key))
        except redis.RedisError as exc:
            raise CredentialStoreError(f"Redis read failed for {key}: {exc}") from exc
        if result is None:
            return None
        if isinstance(result, bytes):
            return result.decode("utf-8")
        if isinstance(result, str):
            return result
        logger.warning("Unexpected Redis payload type for key %s: %s", key, type(result))
        return None

    async def set_many(self, values: Mapping[str, str]) -> None:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                for key, value in values.items():
                    pipe.set(self._qualify(key), value)
                await pipe.execute()
        except redis.RedisError as exc:
            raise CredentialStoreError(f"Redis write failed: {exc}") from exc

    async def delete_many(self, keys: Iterable[str]) -> None:
        qualified = [self._qualify(key) for key in keys]
        if not qualified:
            return
        try:
            await self._client.delete(*qualified)
        except redis.RedisError as exc:
            raise CredentialStoreError(f"Redis delete failed: {exc}") from exc


class InMemoryCredentialAdapter(BaseCredentialAdapter):
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._data.get(key)

    async def set_many(self, values: Mapping[str, str]) -> None:
        async with self._lock:
            self._data.update(values)

    async def delete_many(self, keys: Iterable[str]) -> None:
        async with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)

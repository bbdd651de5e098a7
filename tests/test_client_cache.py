"""
Tests for the client query cache.
"""

import importlib
import typing

import pytest

from rentdesk.client.cache import CacheKey, QueryCache


class TestFetch:
    async def test_miss_loads_once(self):
        cache = QueryCache()
        calls = []

        async def loader():
            calls.append(1)
            return ["report"]

        assert await cache.fetch(("reports", "saved"), loader) == ["report"]
        assert await cache.fetch(("reports", "saved"), loader) == ["report"]
        assert len(calls) == 1

    async def test_failed_load_stores_nothing(self):
        cache = QueryCache()

        async def loader():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await cache.fetch(("reports", "catalog"), loader)
        assert ("reports", "catalog") not in cache
        assert len(cache) == 0


class TestInvalidate:
    def test_drops_dependents_transitively(self):
        cache = QueryCache()
        for key in (("a",), ("b",), ("c",), ("other",)):
            cache.set(key, key)
        cache.register_dependents(("a",), ("b",))
        cache.register_dependents(("b",), ("c",))

        dropped = cache.invalidate(("a",))
        assert dropped == {("a",), ("b",), ("c",)}
        assert ("other",) in cache
        assert len(cache) == 1

    def test_cycles_terminate(self):
        cache = QueryCache()
        cache.set(("a",), 1)
        cache.set(("b",), 2)
        cache.register_dependents(("a",), ("b",))
        cache.register_dependents(("b",), ("a",))

        assert cache.invalidate(("b",)) == {("a",), ("b",)}

    def test_unknown_key_is_harmless(self):
        cache = QueryCache()
        assert cache.invalidate(("missing",)) == {("missing",)}
        assert cache.get(("missing",), "default") == "default"

    def test_clear_keeps_dependency_graph(self):
        cache = QueryCache()
        cache.set(("a",), 1)
        cache.set(("b",), 2)
        cache.register_dependents(("a",), ("b",))

        cache.clear()
        assert len(cache) == 0

        cache.set(("b",), 3)
        assert cache.invalidate(("a",)) == {("a",), ("b",)}
        assert ("b",) not in cache


class TestAnnotations:
    def test_method_annotations_resolve(self):
        # The class defines a method named ``set``; annotations must still name the builtin.
        hints = typing.get_type_hints(QueryCache.invalidate)
        assert hints["return"] == set[CacheKey]

    def test_client_modules_import(self):
        for name in ("rentdesk.client.api", "rentdesk.client.availability", "rentdesk.client.report_builder"):
            assert importlib.import_module(name)

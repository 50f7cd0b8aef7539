# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for streaming enumeration and return shapes."""

import asyncio

import pytest

from cachebridge.cache import Entry, Query, ReturnShape
from cachebridge.cache.query import build_query
from cachebridge.kernel.exceptions import QueryError, ValidationException

ENTRIES = {x: x * 2 for x in range(1, 11)}


@pytest.fixture
async def filled(cache):
    await cache.put_all(ENTRIES)
    return cache


class TestBuildQuery:
    def test_none_matches_all_keys(self):
        assert build_query(None) == Query(where=True, select="key")

    def test_shape_rewrites_projection_only(self):
        def predicate(entry):
            return entry.value > 3

        query = Query.create(where=predicate, select=("key", "ttl"))
        rewritten = build_query(query, ReturnShape.VALUE)
        assert rewritten.where is predicate
        assert rewritten.select == "value"
        assert query.select == ("key", "ttl")

    def test_no_shape_keeps_query(self):
        query = Query.create(select=("key", "value", "ttl"))
        assert build_query(query) is query

    def test_foreign_query_passed_through(self):
        assert build_query("invalid_query", ReturnShape.KEY) == "invalid_query"

    def test_shape_must_be_return_shape(self):
        with pytest.raises(ValidationException):
            build_query(None, "key")


class TestStream:
    async def test_returns_all_keys(self, filled):
        keys = [k async for k in filled.stream(return_shape=ReturnShape.KEY)]
        assert sorted(keys) == sorted(ENTRIES)

    async def test_returns_all_values(self, filled):
        values = await filled.stream(Query.create(), return_shape=ReturnShape.VALUE, page_size=3).to_list()
        assert sorted(values) == sorted(ENTRIES.values())

    async def test_returns_key_value_pairs(self, filled):
        pairs = await filled.stream(Query.create(), return_shape=ReturnShape.KEY_VALUE, page_size=3).to_list()
        assert sorted(pairs) == sorted(ENTRIES.items())

    async def test_returns_entries(self, filled, clock):
        entries = await filled.stream(return_shape=ReturnShape.ENTRY, page_size=4).to_list()
        assert sorted(entries, key=lambda e: e.key) == [
            Entry(key=k, value=v, touched=clock.now, ttl=None) for k, v in sorted(ENTRIES.items())
        ]

    async def test_returns_what_the_query_selects(self, filled):
        rows = await filled.stream(Query.create(select=("key", "value", "ttl")), page_size=3).to_list()
        assert sorted(rows) == [(k, v, None) for k, v in sorted(ENTRIES.items())]

    @pytest.mark.parametrize("page_size", range(1, len(ENTRIES) + 1))
    async def test_page_size_does_not_change_results(self, filled, page_size):
        assert sorted(await filled.stream(page_size=page_size).to_list()) == sorted(await filled.all())

    @pytest.mark.parametrize("shape", list(ReturnShape))
    @pytest.mark.parametrize("page_size", [1, 3, 10])
    async def test_shape_projection_independent_of_page_size(self, filled, shape, page_size):
        expected = {
            ReturnShape.KEY: list(ENTRIES),
            ReturnShape.VALUE: list(ENTRIES.values()),
            ReturnShape.KEY_VALUE: list(ENTRIES.items()),
            ReturnShape.ENTRY: list(ENTRIES.items()),
        }[shape]
        result = await filled.stream(return_shape=shape, page_size=page_size).to_list()
        if shape is ReturnShape.ENTRY:
            result = [(e.key, e.value) for e in result]
        assert sorted(result) == sorted(expected)

    async def test_stream_is_lazy(self, filled):
        engine = filled.handle.engine
        stream = filled.stream(page_size=2)
        assert engine.open_cursors == 0
        assert len(await stream.to_list()) == len(ENTRIES)
        assert engine.open_cursors == 0

    async def test_stream_is_restartable(self, filled):
        stream = filled.stream()
        first = await stream.to_list()
        await filled.delete(1)
        second = await stream.to_list()
        assert sorted(first) == sorted(ENTRIES)
        assert sorted(second) == sorted(k for k in ENTRIES if k != 1)

    async def test_abandoned_stream_releases_cursor(self, filled):
        engine = filled.handle.engine
        async with filled.stream(page_size=2) as stream:
            iterator = aiter(stream)
            await anext(iterator)
            assert engine.open_cursors == 1
        assert engine.open_cursors == 0

    async def test_break_out_of_loop_releases_cursor(self, filled):
        engine = filled.handle.engine
        async for _ in filled.stream(page_size=2):
            assert engine.open_cursors == 1
            break
        for _ in range(3):
            await asyncio.sleep(0)
        assert engine.open_cursors == 0

    async def test_default_page_size_from_handle(self, filled):
        assert filled.stream().page_size == 20
        assert filled.stream(page_size=5).page_size == 5

    @pytest.mark.parametrize("page_size", [0, -1, 2.5, "10"])
    async def test_invalid_page_size(self, filled, page_size):
        with pytest.raises(ValidationException):
            filled.stream(page_size=page_size)


class TestStreamErrors:
    async def test_raises_when_query_is_invalid(self, filled):
        stream = filled.stream("invalid_query")
        with pytest.raises(QueryError) as exc_info:
            await stream.to_list()
        assert exc_info.value.query == "invalid_query"
        assert "invalid match specification" in str(exc_info.value)

    async def test_raises_when_projection_is_invalid(self, filled):
        with pytest.raises(QueryError, match="invalid match return"):
            await filled.stream(Query.create(select="nope")).to_list()

    async def test_predicate_failure_mid_stream(self, filled):
        def explode_on_seven(entry):
            if entry.key == 7:
                raise ZeroDivisionError("boom")
            return True

        engine = filled.handle.engine
        with pytest.raises(QueryError, match="boom"):
            await filled.stream(Query.create(where=explode_on_seven), page_size=2).to_list()
        assert engine.open_cursors == 0

    async def test_all_with_invalid_query(self, filled):
        with pytest.raises(QueryError):
            await filled.all("invalid_query")

import pytest

from remo import Model, ModelRegistry
from remo.core.errors import QueryParamError
from remo.core.query import (
    COUNT_KEYS,
    LIST_KEYS,
    Query,
    apply_query_params,
    exclude_destroyed,
    parse_select,
    parse_sort,
)


@pytest.fixture
def query(db):
    return Query(Model("Widget"), db, ModelRegistry())


@pytest.mark.parametrize(
    "value,expected",
    [
        ("-name", [("name", -1)]),
        ("-name age", [("name", -1), ("age", 1)]),
        ("name,-age", [("name", 1), ("age", -1)]),
        ('{"name": -1, "age": "asc"}', [("name", -1), ("age", 1)]),
    ],
)
def test_parse_sort(value, expected):
    assert parse_sort(value) == expected


def test_parse_sort_rejects_bad_direction():
    with pytest.raises(QueryParamError):
        parse_sort('{"name": "sideways"}')


def test_parse_select():
    assert parse_select("name -secret") == {"name": 1, "secret": 0}
    assert parse_select('{"name": true}') == {"name": 1}
    assert parse_select("") == {}


def test_find_merges_conditions(query):
    apply_query_params(query, [("where", '{"a": 1}'), ("q", '{"b": 2}'), ("find", '{"a": 3}')], LIST_KEYS)
    assert query.conditions == {"a": 3, "b": 2}


def test_count_ignores_paging_keys(query):
    apply_query_params(query, [("limit", "nope"), ("sort", "{bad"), ("q", '{"a": 1}')], COUNT_KEYS)
    assert query.conditions == {"a": 1}


def test_bad_values_raise(query):
    with pytest.raises(QueryParamError):
        apply_query_params(query, [("lim", "ten")], LIST_KEYS)
    with pytest.raises(QueryParamError):
        apply_query_params(query, [("where", "[]")], LIST_KEYS)


def test_exclude_destroyed(query):
    exclude_destroyed(query, "_destroy")
    assert query.conditions == {"_destroy": {"$ne": True}}


def test_exclude_destroyed_respects_caller_filter(query):
    query.find({"_destroy": True})
    exclude_destroyed(query, "_destroy")
    assert query.conditions == {"_destroy": True}


def test_exclude_destroyed_disabled(query):
    exclude_destroyed(query, None)
    assert query.conditions == {}


def test_parse_select_keeps_included_names():
    assert parse_select("name") == {"name": 1}
    assert parse_select("+name,-secret") == {"name": 1, "secret": 0}


def test_parse_select_passes_operator_projections():
    assert parse_select('{"arr": {"$slice": 1}, "name": true, "secret": 0}') == {
        "arr": {"$slice": 1},
        "name": 1,
        "secret": 0,
    }


def test_exclude_destroyed_sees_nested_filter(query):
    query.find({"$or": [{"_destroy": True}, {"name": "a"}]})
    exclude_destroyed(query, "_destroy")
    assert "_destroy" not in query.conditions

    query.find({"$and": [{"size": 1}, {"$nor": [{"_destroy": False}]}]})
    assert query.has_condition("_destroy")

import itertools
from unittest import mock

import pytest

from apps.base.cache import CacheRegistry, QueryCache, make_cache_key
from apps.employee.cache import (
    DEPARTMENT_LIST_NAMESPACE,
    EMPLOYEE_ENTITY_NAMESPACE,
    EMPLOYEE_LIST_NAMESPACE,
    EmployeeCache,
)


def test_cache_key_ignores_parameter_order():
    params = {
        "page": 2,
        "per_page": 25,
        "search": "ann",
        "sort_by": "salary",
        "sort_dir": "desc",
    }
    keys = {
        make_cache_key(EMPLOYEE_LIST_NAMESPACE, dict(items))
        for items in itertools.permutations(params.items())
    }
    assert len(keys) == 1
    assert keys.pop().startswith(f"{EMPLOYEE_LIST_NAMESPACE}:")


def test_cache_key_changes_with_values():
    first = make_cache_key(EMPLOYEE_LIST_NAMESPACE, {"page": 1})
    second = make_cache_key(EMPLOYEE_LIST_NAMESPACE, {"page": 2})
    assert first != second


def test_registry_tracks_each_key_once():
    registry = CacheRegistry()
    registry.track("ns", "ns:one")
    registry.track("ns", "ns:one")
    assert registry.keys("ns") == {"ns:one"}


def test_invalidate_only_touches_its_namespace():
    query_cache = QueryCache()
    query_cache.put("left", "left:1", "a", 60)
    query_cache.put("left", "left:2", "b", 60)
    query_cache.put("right", "right:1", "c", 60)

    assert query_cache.invalidate("left") == 2

    assert query_cache.get("left:1") is None
    assert query_cache.get("left:2") is None
    assert query_cache.get("right:1") == "c"
    assert query_cache.registry.keys("left") == set()
    assert query_cache.registry.keys("right") == {"right:1"}


def test_remember_computes_once():
    query_cache = QueryCache()
    compute = mock.Mock(return_value={"rows": [1, 2]})

    assert query_cache.remember("ns", "ns:k", 60, compute) == {"rows": [1, 2]}
    assert query_cache.remember("ns", "ns:k", 60, compute) == {"rows": [1, 2]}
    assert compute.call_count == 1


def test_remember_does_not_store_none():
    query_cache = QueryCache()
    compute = mock.Mock(return_value=None)

    assert query_cache.remember("ns", "ns:missing", 60, compute) is None
    assert query_cache.remember("ns", "ns:missing", 60, compute) is None
    assert compute.call_count == 2
    assert query_cache.registry.keys("ns") == set()


def test_remember_falls_back_to_compute_when_store_is_down():
    broken = mock.Mock()
    broken.get.side_effect = ConnectionError("cache unreachable")
    broken.set.side_effect = ConnectionError("cache unreachable")
    broken.delete.side_effect = ConnectionError("cache unreachable")
    broken.delete_many.side_effect = ConnectionError("cache unreachable")

    with mock.patch("apps.base.cache.cache", broken), mock.patch(
        "apps.base.cache.logger"
    ) as logger:
        query_cache = QueryCache()
        value = query_cache.remember("ns", "ns:k", 60, lambda: [1, 2, 3])
        dropped = query_cache.invalidate("ns")
        forgotten = query_cache.forget("ns", "ns:k")

    assert value == [1, 2, 3]
    assert dropped == 0
    assert forgotten is False
    assert logger.warning.called
    assert "cache unreachable" in logger.warning.call_args[0][0]


def test_entity_invalidation_drops_entity_and_lists_only():
    employee_cache = EmployeeCache()
    employee_cache.remember_entity("abc", lambda: {"id": "abc"})
    employee_cache.remember_entity("xyz", lambda: {"id": "xyz"})
    employee_cache.remember_list({"page": 1}, lambda: {"data": [], "meta": {}})
    employee_cache.remember_departments(lambda: [{"id": 1}])

    employee_cache.invalidate_entity("abc")

    query_cache = employee_cache.query_cache
    assert query_cache.get(employee_cache.entity_key("abc")) is None
    assert query_cache.get(employee_cache.entity_key("xyz")) == {"id": "xyz"}
    assert query_cache.registry.keys(EMPLOYEE_LIST_NAMESPACE) == set()
    assert query_cache.registry.keys(EMPLOYEE_ENTITY_NAMESPACE) == {
        employee_cache.entity_key("xyz")
    }
    assert len(query_cache.registry.keys(DEPARTMENT_LIST_NAMESPACE)) == 1


def test_department_invalidation_clears_employee_namespaces():
    employee_cache = EmployeeCache()
    employee_cache.remember_entity("abc", lambda: {"id": "abc"})
    employee_cache.remember_departments(lambda: [{"id": 1}])

    employee_cache.invalidate_departments()

    registry = employee_cache.query_cache.registry
    assert registry.keys(EMPLOYEE_ENTITY_NAMESPACE) == set()
    assert registry.keys(DEPARTMENT_LIST_NAMESPACE) == set()


def test_warmup_combinations():
    combinations = list(EmployeeCache().warmup_combinations())

    assert len(combinations) == 18
    assert (15, "name", "asc") in combinations
    assert (50, "salary", "desc") in combinations
    assert (25, "email", "desc") not in combinations


@pytest.mark.django_db
def test_warm_up_stores_first_pages(make_employee):
    make_employee()
    employee_cache = EmployeeCache()
    compute_page = mock.Mock(return_value={"data": [], "meta": {}})

    warmed = employee_cache.warm_up(lambda raw: dict(raw), compute_page)

    assert warmed == 18
    assert compute_page.call_count == 18
    assert len(employee_cache.query_cache.registry.keys(EMPLOYEE_LIST_NAMESPACE)) == 18

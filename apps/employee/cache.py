"""
Employee specific cache namespaces on top of ``apps.base.cache``.

Any employee write can change any list result, so every mutation drops all
list entries; single entity entries are dropped individually.
"""

import logging

from django.conf import settings

from apps.base import constants
from apps.base.cache import QueryCache, make_cache_key

logger = logging.getLogger(__name__)

EMPLOYEE_LIST_NAMESPACE = "employee-list"
EMPLOYEE_ENTITY_NAMESPACE = "employee-entity"
EMPLOYEE_STATS_NAMESPACE = "employee-stats"
DEPARTMENT_LIST_NAMESPACE = "department-list"

DEPARTMENT_STATISTICS_KEY = f"{EMPLOYEE_STATS_NAMESPACE}:department-statistics"
RECENT_EMPLOYEES_KEY = f"{EMPLOYEE_STATS_NAMESPACE}:recent-employees"
DEPARTMENT_LIST_KEY = f"{DEPARTMENT_LIST_NAMESPACE}:all"

STATS_CACHE_TTL = 60 * 60 * 24

WARMUP_PAGE_SIZES = [15, 25, 50]
WARMUP_DESC_FIELDS = [constants.SORT_JOINED_DATE, constants.SORT_SALARY]


class EmployeeCache:

    def __init__(self, query_cache=None):
        self.query_cache = query_cache or QueryCache()

    def list_key(self, params):
        return make_cache_key(EMPLOYEE_LIST_NAMESPACE, params)

    def entity_key(self, employee_id):
        return f"{EMPLOYEE_ENTITY_NAMESPACE}:{employee_id}"

    def remember_list(self, params, compute, ttl=None):
        return self.query_cache.remember(
            EMPLOYEE_LIST_NAMESPACE,
            self.list_key(params),
            ttl or settings.EMPLOYEE_LIST_CACHE_TTL,
            compute,
        )

    def remember_entity(self, employee_id, compute, ttl=None):
        return self.query_cache.remember(
            EMPLOYEE_ENTITY_NAMESPACE,
            self.entity_key(employee_id),
            ttl or settings.EMPLOYEE_ENTITY_CACHE_TTL,
            compute,
        )

    def remember_stats(self, key, compute, ttl=STATS_CACHE_TTL):
        return self.query_cache.remember(EMPLOYEE_STATS_NAMESPACE, key, ttl, compute)

    def put_stats(self, key, value, ttl=STATS_CACHE_TTL):
        return self.query_cache.put(EMPLOYEE_STATS_NAMESPACE, key, value, ttl)

    def remember_departments(self, compute, ttl=STATS_CACHE_TTL):
        return self.query_cache.remember(
            DEPARTMENT_LIST_NAMESPACE, DEPARTMENT_LIST_KEY, ttl, compute
        )

    def put_departments(self, value, ttl=STATS_CACHE_TTL):
        return self.query_cache.put(DEPARTMENT_LIST_NAMESPACE, DEPARTMENT_LIST_KEY, value, ttl)

    #   ============ INVALIDATION   =

    def invalidate_list_caches(self):
        return self.query_cache.invalidate(EMPLOYEE_LIST_NAMESPACE)

    def invalidate_entity(self, employee_id):
        self.query_cache.forget(EMPLOYEE_ENTITY_NAMESPACE, self.entity_key(employee_id))
        self.query_cache.invalidate(EMPLOYEE_STATS_NAMESPACE)
        return self.invalidate_list_caches()

    def invalidate_entities(self, employee_ids):
        for employee_id in employee_ids:
            self.query_cache.forget(EMPLOYEE_ENTITY_NAMESPACE, self.entity_key(employee_id))
        self.query_cache.invalidate(EMPLOYEE_STATS_NAMESPACE)
        return self.invalidate_list_caches()

    def invalidate_all(self):
        dropped = 0
        for namespace in (
            EMPLOYEE_LIST_NAMESPACE,
            EMPLOYEE_ENTITY_NAMESPACE,
            EMPLOYEE_STATS_NAMESPACE,
        ):
            dropped += self.query_cache.invalidate(namespace)
        return dropped

    def invalidate_departments(self):
        """Department rows are embedded in employee payloads."""
        dropped = self.query_cache.invalidate(DEPARTMENT_LIST_NAMESPACE)
        return dropped + self.invalidate_all()

    #   ============ WARM UP   =

    def warmup_combinations(self):
        for page_size in WARMUP_PAGE_SIZES:
            for sort_field in constants.SORT_FIELDS:
                yield page_size, sort_field, constants.SORT_ASC
                if sort_field in WARMUP_DESC_FIELDS:
                    yield page_size, sort_field, constants.SORT_DESC

    def warm_up(self, build_params, compute_page):
        """Precompute the first page of the common size/sort combinations.

        ``build_params`` turns raw query values into the canonical list
        parameters, ``compute_page`` returns the payload for them.
        """
        warmed = 0
        for page_size, sort_field, sort_dir in self.warmup_combinations():
            logger.info(
                f"Caching query: page size {page_size}, sort by {sort_field} {sort_dir}"
            )
            params = build_params(
                {
                    "page": 1,
                    "per_page": page_size,
                    "sort_by": sort_field,
                    "sort_dir": sort_dir,
                }
            )
            if self.query_cache.put(
                EMPLOYEE_LIST_NAMESPACE,
                self.list_key(params),
                compute_page(params),
                settings.EMPLOYEE_WARMUP_CACHE_TTL,
            ):
                warmed += 1
        return warmed


employee_cache = EmployeeCache()

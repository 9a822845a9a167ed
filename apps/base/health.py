import logging

import redis
from django.conf import settings
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse

from ems.celery import app as celery_app

logger = logging.getLogger(__name__)


def check_database():
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
    return True


def check_redis():
    if not settings.REDIS_URL:
        return "not configured"
    redis.Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2).ping()
    return True


def check_cache():
    cache.set("health_check", "ok", 30)
    if cache.get("health_check") != "ok":
        raise RuntimeError("Cache read/write failed")
    return True


def check_broker():
    with celery_app.connection_for_read() as conn:
        conn.ensure_connection(max_retries=1)
    return True


HEALTH_CHECKS = {
    "database": check_database,
    "redis": check_redis,
    "cache": check_cache,
    "broker": check_broker,
}


def health_check(request):
    """
    Health check endpoint for deployment monitoring
    """
    health_status = {"status": "healthy", "checks": {}}

    for name, check in HEALTH_CHECKS.items():
        try:
            health_status["checks"][name] = check()
        except Exception as e:
            logger.warning(f"Health check {name} failed: {e}")
            health_status["status"] = "unhealthy"
            health_status["checks"][name] = str(e)

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JsonResponse(health_status, status=status_code)


def readiness_check(request):
    """
    Readiness check for Kubernetes/container orchestration
    """
    try:
        check_database()
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JsonResponse({"status": "not ready"}, status=503)
    return JsonResponse({"status": "ready"})


def liveness_check(request):
    """
    Liveness check for Kubernetes/container orchestration
    """
    return JsonResponse({"status": "alive"})

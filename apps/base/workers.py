"""
Celery worker management.

The backend is chosen once from ``settings.WORKER_BACKEND``:

* ``process`` starts one detached ``celery worker`` per queue, sized from
  ``QUEUE_CONCURRENCY`` and tracked through a pid file.
* ``remote`` drives workers that are already running through Celery's
  remote control (``add_consumer`` / ``cancel_consumer``).

Both expose ``start(queue)``, ``stop(queue)`` and ``status(queue)``.
"""

import logging
import os
import signal
import subprocess
from pathlib import Path

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from apps.base.constants import DEFAULT_QUEUE, QUEUE_CONCURRENCY
from ems.celery import app as celery_app

logger = logging.getLogger(__name__)

QUEUES = list(QUEUE_CONCURRENCY)


def worker_count(queue):
    return QUEUE_CONCURRENCY.get(queue, QUEUE_CONCURRENCY[DEFAULT_QUEUE])


def queue_depth(queue, app=None):
    """Number of messages waiting in ``queue``, ``None`` if the broker can't tell."""
    app = app or celery_app
    try:
        with app.connection_for_read() as connection:
            channel = connection.channel()
            try:
                _, message_count, _ = channel.queue_declare(queue=queue, passive=True)
            finally:
                channel.close()
    except Exception as e:
        logger.warning(f"Could not read the depth of queue {queue}: {e}")
        return None
    return message_count


class WorkerBackend:
    name = None

    def __init__(self, app=None):
        self.app = app or celery_app

    def start(self, queue):
        raise NotImplementedError

    def stop(self, queue):
        raise NotImplementedError

    def workers(self, queue):
        raise NotImplementedError

    def status(self, queue):
        waiting = queue_depth(queue, app=self.app)
        return {
            "queue": queue,
            "backend": self.name,
            "concurrency": worker_count(queue),
            "waiting": waiting,
            "workers": self.workers(queue),
            "state": "Active" if waiting else "Idle",
        }


class ProcessWorkerBackend(WorkerBackend):
    name = "process"

    def __init__(self, app=None, pid_dir=None):
        super().__init__(app=app)
        self.pid_dir = Path(pid_dir or settings.WORKER_PID_DIR)

    def pidfile(self, queue):
        return self.pid_dir / f"{queue}.pid"

    def logfile(self, queue):
        return self.pid_dir / f"{queue}.log"

    def read_pid(self, queue):
        try:
            return int(self.pidfile(queue).read_text().strip())
        except (FileNotFoundError, ValueError):
            return None

    def is_running(self, queue):
        pid = self.read_pid(queue)
        if pid is None:
            return False
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            return True
        return True

    def command(self, queue):
        return [
            "celery",
            "-A",
            self.app.main,
            "worker",
            "-Q",
            queue,
            "-c",
            str(worker_count(queue)),
            "-n",
            f"{queue}@%h",
            f"--pidfile={self.pidfile(queue)}",
            f"--logfile={self.logfile(queue)}",
            "--detach",
        ]

    def start(self, queue):
        if self.is_running(queue):
            logger.info(f"Worker for queue {queue} is already running")
            return False

        self.pid_dir.mkdir(parents=True, exist_ok=True)
        subprocess.run(self.command(queue), check=True)
        logger.info(f"Started {worker_count(queue)} worker processes for queue {queue}")
        return True

    def stop(self, queue):
        pid = self.read_pid(queue)
        if pid is None:
            logger.info(f"No worker pid file for queue {queue}")
            return False
        try:
            # Warm shutdown: running tasks are finished first.
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.warning(f"Stale pid file for queue {queue}, removing it")
            self.pidfile(queue).unlink(missing_ok=True)
            return False

        logger.info(f"Sent SIGTERM to worker {pid} of queue {queue}")
        return True

    def workers(self, queue):
        pid = self.read_pid(queue)
        if pid is not None and self.is_running(queue):
            return [f"pid {pid}"]
        return []


class RemoteControlWorkerBackend(WorkerBackend):
    name = "remote"

    def start(self, queue):
        replies = self.app.control.add_consumer(queue, reply=True) or []
        logger.info(f"{len(replies)} workers acknowledged consuming from {queue}")
        return bool(replies)

    def stop(self, queue):
        replies = self.app.control.cancel_consumer(queue, reply=True) or []
        logger.info(f"{len(replies)} workers stopped consuming from {queue}")
        return bool(replies)

    def workers(self, queue):
        active = self.app.control.inspect().active_queues() or {}
        return sorted(
            worker
            for worker, queues in active.items()
            if any(item.get("name") == queue for item in queues)
        )


WORKER_BACKENDS = {
    ProcessWorkerBackend.name: ProcessWorkerBackend,
    RemoteControlWorkerBackend.name: RemoteControlWorkerBackend,
}


def get_worker_backend(name=None, **kwargs):
    name = name or settings.WORKER_BACKEND
    try:
        backend_class = WORKER_BACKENDS[name]
    except KeyError:
        raise ImproperlyConfigured(
            f"Unknown WORKER_BACKEND {name!r}, expected one of {', '.join(WORKER_BACKENDS)}"
        )
    return backend_class(**kwargs)

import time

from django.core.management.base import BaseCommand, CommandError

from apps.base.workers import QUEUES, get_worker_backend

RESTART_GRACE_SECONDS = 5


class Command(BaseCommand):
    help = "Manage Celery queue workers (start, stop, restart, status)"

    def add_arguments(self, parser):
        parser.add_argument("action", choices=["start", "stop", "restart", "status"])
        parser.add_argument("--queue", help="Specific queue to manage")
        parser.add_argument("--backend", help="Override settings.WORKER_BACKEND")

    def handle(self, *args, **options):
        queue = options["queue"]
        if queue and queue not in QUEUES:
            raise CommandError(
                f"Invalid queue: {queue}. Available queues: {', '.join(QUEUES)}"
            )

        self.backend = get_worker_backend(options["backend"])
        queues = [queue] if queue else QUEUES
        getattr(self, f"{options['action']}_workers")(queues)

    def start_workers(self, queues):
        self.stdout.write(self.style.NOTICE(f"Starting workers for queues: {', '.join(queues)}"))
        for queue in queues:
            if self.backend.start(queue):
                self.stdout.write(self.style.SUCCESS(f"Started workers for queue: {queue}"))
            else:
                self.stdout.write(self.style.WARNING(f"Workers for queue {queue} not started"))

    def stop_workers(self, queues):
        self.stdout.write(self.style.NOTICE(f"Stopping workers for queues: {', '.join(queues)}"))
        for queue in queues:
            if self.backend.stop(queue):
                self.stdout.write(self.style.SUCCESS(f"Stopped workers for queue: {queue}"))
            else:
                self.stdout.write(self.style.WARNING(f"No running workers for queue: {queue}"))

    def restart_workers(self, queues):
        self.stop_workers(queues)
        self.stdout.write("Waiting for workers to finish current jobs...")
        time.sleep(RESTART_GRACE_SECONDS)
        self.start_workers(queues)

    def status_workers(self, queues):
        self.stdout.write(self.style.NOTICE("Queue Worker Status"))
        for queue in queues:
            status = self.backend.status(queue)
            waiting = "unknown" if status["waiting"] is None else status["waiting"]
            self.stdout.write(f"Queue: {queue}")
            self.stdout.write(f"  Jobs waiting: {waiting}")
            self.stdout.write(f"  Concurrency: {status['concurrency']}")
            self.stdout.write(f"  Workers: {', '.join(status['workers']) or 'none'}")
            self.stdout.write(f"  Status: {status['state']}")

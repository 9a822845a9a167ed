from django.core.management.base import BaseCommand

from apps.employee.cache import DEPARTMENT_LIST_NAMESPACE, employee_cache
from apps.employee.services import EmployeeService


class Command(BaseCommand):
    help = "Manages the employee query cache (warmup, clear)"

    def add_arguments(self, parser):
        parser.add_argument("action", choices=["warmup", "clear"])

    def handle(self, *args, **options):
        if options["action"] == "clear":
            self.clear_query_cache()
        else:
            self.warmup_query_cache()

    def clear_query_cache(self):
        self.stdout.write(self.style.NOTICE("Clearing query cache..."))
        dropped = employee_cache.invalidate_all()
        dropped += employee_cache.query_cache.invalidate(DEPARTMENT_LIST_NAMESPACE)
        self.stdout.write(self.style.SUCCESS(f"Query cache cleared: {dropped} entries removed"))

    def warmup_query_cache(self):
        self.stdout.write(self.style.NOTICE("Warming up query cache..."))
        warmed = EmployeeService().warm_up()
        self.stdout.write(self.style.SUCCESS(f"Query cache warmed up: {warmed} queries cached"))

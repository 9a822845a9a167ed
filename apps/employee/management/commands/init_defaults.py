import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.department.models import Department
from apps.employee.cache import employee_cache
from apps.employee.repository import EmployeeRepository

DEFAULT_DEPARTMENTS = {
    "Engineering": "Product development and platform teams",
    "HR": "People operations and recruiting",
    "Finance": "Accounting, payroll and budgeting",
    "Operations": "Facilities and internal tooling",
    "Sales": "Customer acquisition and accounts",
}

FIRST_NAMES = ["Ann", "Ben", "Chloe", "David", "Emma", "Farid", "Grace", "Hugo", "Isla", "Jon"]
LAST_NAMES = ["Smith", "Patel", "Garcia", "Kim", "Novak", "Okafor", "Rossi", "Berg", "Silva", "Khan"]
DESIGNATIONS = [
    "Software Engineer",
    "HR Executive",
    "Manager",
    "Python Developer",
    "Accountant",
    "Sales Representative",
]
STREETS = ["Main St", "Oak Ave", "Park Rd", "Station Rd", "High St"]

SEED_BATCH_SIZE = 1000


class Command(BaseCommand):
    help = "Initialize default departments and optional sample employees"

    def add_arguments(self, parser):
        parser.add_argument(
            "--employees",
            type=int,
            default=0,
            help="Number of sample employees to create",
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE("Initializing default data..."))

        departments = self.create_departments()
        total = options["employees"]
        if total > 0:
            self.create_employees([department.pk for department in departments], total)
            employee_cache.invalidate_all()

        self.stdout.write(self.style.SUCCESS("Default data initialization completed."))

    @transaction.atomic
    def create_departments(self):
        departments = []
        for name, description in DEFAULT_DEPARTMENTS.items():
            department, created = Department.objects.get_or_create(
                name=name, defaults={"description": description}
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f"Department created: {name}"))
            departments.append(department)
        return departments

    def create_employees(self, department_ids, total):
        repository = EmployeeRepository()
        today = timezone.localdate()
        run = timezone.now().strftime("%Y%m%d%H%M%S")
        created = 0

        while created < total:
            batch = []
            for index in range(created, min(created + SEED_BATCH_SIZE, total)):
                first, last = random.choice(FIRST_NAMES), random.choice(LAST_NAMES)
                batch.append(
                    {
                        "name": f"{first} {last}",
                        "email": f"{first}.{last}.{run}.{index}@example.com".lower(),
                        "department_id": random.choice(department_ids),
                        "designation": random.choice(DESIGNATIONS),
                        "salary": Decimal(random.randint(3000000, 15000000)) / 100,
                        "address": f"{random.randint(1, 999)} {random.choice(STREETS)}",
                        "joined_date": today - timedelta(days=random.randint(0, 5 * 365)),
                    }
                )
            created += repository.create_many(batch)
            self.stdout.write(f"Inserted {created} of {total} employees")

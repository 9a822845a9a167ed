import logging
import time

from django.core.management.base import BaseCommand
from django.db import connection

logger = logging.getLogger(__name__)

PAUSE_BETWEEN_TABLES = 0.1


class Command(BaseCommand):
    help = "Optimize database tables and refresh planner statistics"

    def add_arguments(self, parser):
        parser.add_argument(
            "--pause",
            type=float,
            default=PAUSE_BETWEEN_TABLES,
            help="Seconds to wait between tables",
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE("Starting database optimization..."))
        tables = connection.introspection.table_names()
        vendor = connection.vendor

        for table in tables:
            for statement in self.table_statements(vendor, table):
                self.run_statement(statement)
            self.stdout.write(f"  Optimized {table}")
            time.sleep(options["pause"])

        self.stdout.write(self.style.NOTICE("Updating database statistics..."))
        for statement in self.analyze_statements(vendor, tables):
            self.run_statement(statement)

        logger.info(f"Database optimization finished for {len(tables)} tables")
        self.stdout.write(self.style.SUCCESS("Database optimization completed successfully!"))

    def table_statements(self, vendor, table):
        name = connection.ops.quote_name(table)
        if vendor == "mysql":
            return [f"OPTIMIZE TABLE {name}"]
        if vendor == "postgresql":
            return [f"VACUUM ANALYZE {name}"]
        return []

    def analyze_statements(self, vendor, tables):
        if vendor == "sqlite":
            return ["ANALYZE", "VACUUM"]
        if vendor == "mysql" and tables:
            names = ", ".join(connection.ops.quote_name(table) for table in tables)
            return [f"ANALYZE TABLE {names}"]
        if vendor == "postgresql":
            return ["ANALYZE"]
        return []

    def run_statement(self, statement):
        with connection.cursor() as cursor:
            cursor.execute(statement)

from django.apps import AppConfig


class DepartmentConfig(AppConfig):
    name = "apps.department"

    def ready(self):
        import apps.department.signals  # noqa: F401

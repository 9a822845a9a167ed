DEFAULT_QUEUE = "default"
EMPLOYEE_OPERATIONS_QUEUE = "employee-operations"
EMPLOYEE_REPORTS_QUEUE = "employee-reports"
MAINTENANCE_QUEUE = "maintenance"
DESTRUCTIVE_OPERATIONS_QUEUE = "destructive-operations"

# Concurrent workers per queue; risky and heavy queues are kept narrow.
QUEUE_CONCURRENCY = {
    DEFAULT_QUEUE: 4,
    EMPLOYEE_OPERATIONS_QUEUE: 3,
    EMPLOYEE_REPORTS_QUEUE: 2,
    MAINTENANCE_QUEUE: 1,
    DESTRUCTIVE_OPERATIONS_QUEUE: 1,
}

SORT_NAME = "name"
SORT_EMAIL = "email"
SORT_JOINED_DATE = "joined_date"
SORT_SALARY = "salary"
SORT_FIELDS = [SORT_NAME, SORT_EMAIL, SORT_JOINED_DATE, SORT_SALARY]

SORT_ASC = "asc"
SORT_DESC = "desc"
SORT_DIRECTIONS = [SORT_ASC, SORT_DESC]

DEFAULT_PAGE_SIZE = 15
MAX_PAGE_SIZE = 100

REPORT_FULL = "full"
REPORT_DEPARTMENT_SUMMARY = "department_summary"
REPORT_SALARY_DISTRIBUTION = "salary_distribution"
REPORT_JOINING_TRENDS = "joining_trends"
REPORT_TYPES = [
    REPORT_FULL,
    REPORT_DEPARTMENT_SUMMARY,
    REPORT_SALARY_DISTRIBUTION,
    REPORT_JOINING_TRENDS,
]

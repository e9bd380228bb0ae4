"""Default values for a new board."""

CURRENT_VERSION = 8

CONFIG_FILE_NAME = "config.yml"
LOG_FILE_NAME = "activity.jsonl"
DEFAULT_DIR = "kanban"
DEFAULT_TASKS_DIR = "tasks"

ARCHIVED_STATUS = "archived"
REVIEW_STATUS = "review"

DEFAULT_STATUSES = ["backlog", "todo", "in-progress", "review", "done", ARCHIVED_STATUS]
# Columns where time-in-status is noise
NO_DURATION_STATUSES = {"backlog", "done", ARCHIVED_STATUS}

DEFAULT_PRIORITIES = ["low", "medium", "high", "critical"]

DEFAULT_STATUS = "backlog"
DEFAULT_PRIORITY = "medium"
DEFAULT_CLASS = "standard"

DEFAULT_CLASSES = [
    {"name": "expedite", "wip_limit": 1, "bypass_column_wip": True},
    {"name": "fixed-date"},
    {"name": "standard"},
    {"name": "intangible"},
]

DEFAULT_CLAIM_TIMEOUT = "1h"
DEFAULT_TITLE_LINES = 2

DEFAULT_AGE_THRESHOLDS = [
    {"after": "0s", "color": "242"},
    {"after": "1h", "color": "34"},
    {"after": "24h", "color": "226"},
    {"after": "72h", "color": "208"},
    {"after": "168h", "color": "196"},
]

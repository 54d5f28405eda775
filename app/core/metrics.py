"""
Prometheus metrics for the registration workflow
"""

import logging
from prometheus_client import Counter, Histogram, REGISTRY

logger = logging.getLogger(__name__)


def _counter(name: str, documentation: str, labels=()):
    # Re-imports (reloads, test collection) must not register twice
    try:
        return Counter(name, documentation, list(labels))
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labels=()):
    try:
        return Histogram(name, documentation, list(labels))
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _counter(
    "app_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = _histogram(
    "app_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)
REGISTRATIONS_CREATED = _counter(
    "registrations_created_total",
    "Registrations created",
    ["source"]
)
WAITLIST_ADDITIONS = _counter(
    "waitlist_additions_total",
    "People added to a waiting list"
)
WAITLIST_PROMOTIONS = _counter(
    "waitlist_promotions_total",
    "Waiting list entries promoted to registrations",
    ["trigger"]
)
EMAIL_FAILURES = _counter(
    "email_failures_total",
    "Notification emails that could not be sent",
    ["template"]
)

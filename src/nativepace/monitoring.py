"""Monitoring configuration for the learning engine."""
from prometheus_client import Counter, Histogram, start_http_server

# Attempt metrics
attempts_recorded = Counter(
    "nativepace_attempts_recorded_total",
    "Total number of exercise attempts recorded",
    ["exercise_type", "outcome"],
)

patterns_learned = Counter(
    "nativepace_patterns_learned_total",
    "Total number of times a pattern crossed the learned threshold",
)

# Session metrics
sessions_completed = Counter(
    "nativepace_sessions_completed_total",
    "Total number of practice and review sessions completed",
    ["kind"],
)

session_duration = Histogram(
    "nativepace_session_duration_seconds",
    "Duration of completed sessions in seconds",
    ["kind"],
    buckets=[60, 300, 600, 1800, 3600],  # 1min, 5min, 10min, 30min, 1hour
)

session_accuracy = Histogram(
    "nativepace_session_accuracy_percent",
    "Accuracy of completed sessions",
    ["kind"],
    buckets=[25, 50, 75, 90, 100],
)

# Review queue metrics
due_patterns_served = Counter(
    "nativepace_due_patterns_served_total",
    "Total number of due patterns handed to review sessions",
)

# Database metrics
db_errors = Counter(
    "nativepace_db_errors_total",
    "Total number of progress store errors",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)

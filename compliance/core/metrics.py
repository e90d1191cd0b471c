"""
Prometheus metrics for rule evaluation.

The evaluator itself does no I/O; exposing these metrics is left to the embedding
application (for example through ``prometheus_client.generate_latest``).
"""

import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram


# =============================================================================
# Evaluation Metrics
# =============================================================================

rules_evaluated_total = Counter(
    "compliance_rules_evaluated_total",
    "Total number of (rule, context) evaluations",
    ["rule"],
)

rule_violations_total = Counter(
    "compliance_rule_violations_total",
    "Total rule violations by rule and severity",
    ["rule", "severity"],
)

rule_failures_total = Counter(
    "compliance_rule_failures_total",
    "Total (rule, context) pairs that could not be evaluated",
    ["rule"],
)

malformed_license_expressions_total = Counter(
    "compliance_malformed_license_expressions_total",
    "Concluded license expressions that failed to parse and were treated as absent",
)

evaluation_duration_seconds = Histogram(
    "compliance_evaluation_duration_seconds",
    "Duration of a complete evaluator run in seconds",
    buckets=[0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
)


@contextmanager
def track_evaluation_duration(enabled: bool = True):
    """Context manager that observes the duration of an evaluator run."""
    start = time.perf_counter()
    try:
        yield
    finally:
        if enabled:
            evaluation_duration_seconds.observe(time.perf_counter() - start)

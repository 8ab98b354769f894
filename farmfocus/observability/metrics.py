"""
Prometheus metrics definitions for the FarmFocus progression engine.

This module defines all metrics collected by the engine, organized by category:
- Progression metrics: XP awarded, streak and drought transitions
- Economy metrics: gold spent, purchases, harvests
- Scheduler metrics: daily sweep runs, per-user failures, durations

Metrics are exposed over HTTP by main.py when METRICS_PORT is set.
"""

import logging
from prometheus_client import Counter, Histogram, Info

logger = logging.getLogger(__name__)

# =============================================================================
# Progression Metrics
# =============================================================================

xp_awarded_total = Counter(
    "xp_awarded_total",
    "Total XP awarded for completions",
    ["ref_kind"],  # ref_kind: task/habit
)

xp_revoked_total = Counter(
    "xp_revoked_total",
    "Total XP removed by undone completions",
    ["ref_kind"],
)

streak_increments_total = Counter(
    "streak_increments_total",
    "Total first-completion-of-the-day streak increments",
)

drought_transitions_total = Counter(
    "drought_transitions_total",
    "Total drought state transitions",
    ["direction"],  # direction: entered/cleared
)

plants_recovered_total = Counter(
    "plants_recovered_total",
    "Total withered plants restored",
)

# =============================================================================
# Economy Metrics
# =============================================================================

gold_spent_total = Counter(
    "gold_spent_total",
    "Total gold debited by purchases",
)

purchases_total = Counter(
    "purchases_total",
    "Total purchase attempts",
    ["kind", "status"],  # kind: seed/bed/tool/fertilizer, status: success/rejected/error
)

harvests_total = Counter(
    "harvests_total",
    "Total plants harvested",
    ["seed"],
)

seeds_planted_total = Counter(
    "seeds_planted_total",
    "Total seeds planted",
    ["seed"],
)

# =============================================================================
# Scheduler Metrics
# =============================================================================

scheduler_runs_total = Counter(
    "scheduler_runs_total",
    "Total daily sweep runs",
    ["job", "status"],  # status: success/partial/error
)

scheduler_user_failures_total = Counter(
    "scheduler_user_failures_total",
    "Total per-user failures inside daily sweeps",
    ["job"],
)

scheduler_run_duration_seconds = Histogram(
    "scheduler_run_duration_seconds",
    "Daily sweep duration in seconds",
    ["job"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0, 120.0, 600.0],
)

# =============================================================================
# Application Info
# =============================================================================

app_info = Info(
    "app_info",
    "Application information",
)


def init_metrics(store_backend: str) -> None:
    """
    Initialize metrics with application information.

    This should be called once at application startup to set
    static metadata about the process.
    """
    import os
    import sys

    app_info.info(
        {
            "version": os.getenv("GIT_COMMIT_SHA", "dev")[:7],
            "store_backend": store_backend,
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        }
    )

    logger.info("Prometheus metrics initialized")


# =============================================================================
# Helper Functions
# =============================================================================


def get_sweep_status(processed: int, failed: int) -> str:
    """
    Convert a sweep's counts to a status label.

    Args:
        processed: Users handled without error
        failed: Users whose handling raised

    Returns:
        'success' when nothing failed, 'error' when every user failed,
        otherwise 'partial'
    """
    if failed == 0:
        return "success"
    elif processed == 0:
        return "error"
    else:
        return "partial"

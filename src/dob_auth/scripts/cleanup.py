# src/dob_auth/scripts/cleanup.py
"""
Cron job removing expired challenges and sessions.

Deployments that disable the in-process sweep (CLEANUP_ENABLED=false) run
this on a schedule instead. Only the database and redis store backends are
meaningful here; the memory backend lives inside the API process.
"""

import logging
import sys

from dob_auth.core.settings import Settings, settings
from dob_auth.services.auth_service import build_auth_service
from dob_auth.services.cleanup import CleanupResult, CleanupScheduler
from dob_auth.services.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def run_cleanup(config: Settings) -> CleanupResult:
    """Sweep the configured stores once and return the removal counts."""
    service = build_auth_service(config)
    scheduler = CleanupScheduler(service.challenges, service.sessions)
    return scheduler.run_once()


def main() -> int:
    logging.basicConfig(level=settings.log_level.upper())
    if settings.store_backend == "memory":
        print("AUTH_STORE_BACKEND=memory has no shared state to clean", file=sys.stderr)
        return 1
    try:
        result = run_cleanup(settings)
    except StoreUnavailable as err:
        logger.error("Cleanup failed: %s", err)
        return 1
    print(f"Removed {result.challenges} challenges and {result.sessions} sessions")
    return 0


if __name__ == "__main__":
    sys.exit(main())

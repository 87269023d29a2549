"""Run one WFH reconciliation sweep.

Meant to be triggered by an external scheduler (cron, systemd timer, ...),
e.g. daily shortly after midnight in the business timezone:

    5 0 * * * cd /srv/wfh-attendance && python scripts/reconcile_wfh.py

Exit status is 1 when any request could not be processed.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from wfh_attendance.container import build_container_from_settings
from wfh_attendance.main import configure_logging, load_settings

logger = logging.getLogger("reconcile_wfh")


def main() -> int:
    settings = load_settings()
    configure_logging(settings)
    container = build_container_from_settings(settings)
    service = container.reconciliation_service

    before = service.get_pending_stats()
    result = service.reconcile_all()
    after = service.get_pending_stats()

    print(
        json.dumps(
            {
                "results": result.to_dict(),
                "statistics": {"before": before.to_dict(), "after": after.to_dict()},
            },
            indent=2,
        )
    )
    if not result.ok:
        logger.error("WFH reconciliation finished with %d error(s)", len(result.errors))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

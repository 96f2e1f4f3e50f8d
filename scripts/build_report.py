from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a CRM report from a JSON snapshot file.")
    parser.add_argument("snapshot", help="Path to a JSON file with pipelineItems, activityLogs and financeEntries.")
    parser.add_argument(
        "--report",
        choices=("dashboard", "kpis"),
        default="dashboard",
        help="Report to build (default: dashboard).",
    )
    parser.add_argument(
        "--window",
        default=None,
        help="KPI window such as this_week or last_month (default: KPI_DEFAULT_WINDOW).",
    )
    parser.add_argument(
        "--as-of",
        default=None,
        help="ISO-8601 reference instant (default: snapshot asOf, else now).",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file path (default: .env).",
    )
    return parser.parse_args()


def load_snapshot(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as snapshot_file:
        return json.load(snapshot_file)


def build_report(
    payload: Dict[str, Any],
    report: str,
    window: Optional[str],
    as_of: Optional[str],
    env_file: str,
) -> Dict[str, Any]:
    from src.core.config import Settings
    from src.core.logging import configure_logging
    from src.schemas.reporting import ReportingSnapshot
    from src.services.reporting_service import ReportingService

    settings = Settings(_env_file=env_file)
    configure_logging(settings.log_level)
    service = ReportingService(settings=settings)
    snapshot = ReportingSnapshot.model_validate(payload)
    now = datetime.fromisoformat(as_of) if as_of else None
    if report == "kpis":
        result = service.calculate_kpis(snapshot, window, now)
    else:
        result = service.build_executive_dashboard(snapshot, now)
    return result.model_dump(mode="json", by_alias=True)


def main() -> None:
    args = parse_args()
    payload = load_snapshot(args.snapshot)
    result = build_report(payload, args.report, args.window, args.as_of, args.env_file)
    print(json.dumps(result, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()

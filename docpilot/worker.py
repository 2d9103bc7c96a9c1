from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import datetime
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from zoneinfo import ZoneInfo

from docpilot.config import Settings, get_settings
from docpilot.services.reporting import ReportService, print_oauth_setup

log = logging.getLogger("worker")

JOB_ID = "scheduled_report"


def first_run_at(settings: Settings, now: Optional[datetime] = None) -> datetime:
    """Today at the configured hour in the configured zone; the interval trigger rolls it forward."""
    tz = ZoneInfo(settings.schedule_timezone)
    now = now or datetime.now(tz)
    return now.astimezone(tz).replace(hour=settings.schedule_hour, minute=0, second=0, microsecond=0)


async def job_scheduled_report(service: ReportService) -> None:
    # run_report mails its own error notification; never let a failure kill the scheduler
    try:
        resp = await asyncio.to_thread(service.run_scheduled_report)
        log.info("scheduled report: success=%s %s", resp.success, resp.message)
    except Exception as e:
        log.exception("scheduled report failed: %s", e)


def build_scheduler(settings: Settings, service: ReportService) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=ZoneInfo(settings.schedule_timezone))
    scheduler.add_job(
        job_scheduled_report,
        "interval",
        days=max(1, settings.schedule_every_days),
        start_date=first_run_at(settings),
        args=[service],
        id=JOB_ID,
        replace_existing=True,
    )
    return scheduler


async def main(run_now: bool = False) -> None:
    settings = get_settings()
    service = ReportService.from_settings(settings)
    scheduler = build_scheduler(settings, service)
    scheduler.start()
    log.info(
        "automation: %d-day report every %d day(s) at %02d:00 %s",
        settings.report_days, settings.schedule_every_days, settings.schedule_hour, settings.schedule_timezone,
    )
    if run_now:
        await job_scheduled_report(service)

    # Keep process alive
    await asyncio.Event().wait()


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, default=str))


def cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m docpilot.worker", description="GA4 email report runner")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Send a report now")
    run.add_argument("--days", type=int, default=None, help="Period length (default: REPORT_DAYS)")
    sub.add_parser("weekly", help="Send a 7-day report")
    sub.add_parser("monthly", help="Send a 30-day report")
    sub.add_parser("quarterly", help="Send a 90-day report")
    sub.add_parser("check", help="Log the configuration and test GA4 access")
    sub.add_parser("oauth", help="Show the OAuth setup steps and scopes")
    sched = sub.add_parser("schedule", help="Run the report on a schedule (default)")
    sched.add_argument("--run-now", action="store_true", help="Also send one report at startup")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if args.command in (None, "schedule"):
        asyncio.run(main(run_now=getattr(args, "run_now", False)))
        return 0
    if args.command == "oauth":
        print(print_oauth_setup())
        return 0

    service = ReportService.from_settings(get_settings())
    if args.command == "check":
        result = service.run_system_check()
        _print(result)
        return 0 if result["connection"].get("ok") else 1

    runners = {
        "run": lambda: service.run_report(args.days),
        "weekly": service.run_weekly_report,
        "monthly": service.run_monthly_report,
        "quarterly": service.run_90_day_report,
    }
    resp = runners[args.command]()
    _print(resp.model_dump())
    return 0 if resp.success else 1


if __name__ == "__main__":
    raise SystemExit(cli())

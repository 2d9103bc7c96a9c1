from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from docpilot.config import Settings
from docpilot.worker import JOB_ID, build_scheduler, cli, first_run_at


def test_first_run_at_uses_configured_hour_and_zone():
    s = Settings(schedule_hour=9, schedule_timezone="America/New_York")
    now = datetime(2024, 6, 10, 15, 30, tzinfo=ZoneInfo("UTC"))
    start = first_run_at(s, now)
    assert start.tzinfo == ZoneInfo("America/New_York")
    assert (start.year, start.month, start.day, start.hour, start.minute) == (2024, 6, 10, 9, 0)


def test_build_scheduler_registers_interval_job():
    s = Settings(schedule_every_days=3, schedule_timezone="UTC")
    scheduler = build_scheduler(s, service=object())
    job = scheduler.get_job(JOB_ID)
    assert job is not None
    assert job.trigger.interval == timedelta(days=3)


def test_cli_oauth(capsys):
    assert cli(["oauth"]) == 0
    assert "analytics.readonly" in capsys.readouterr().out

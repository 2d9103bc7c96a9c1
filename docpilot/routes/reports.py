from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from docpilot.config import get_settings
from docpilot.models.types import ReportRunResponse
from docpilot.services.reporting import ReportService

router = APIRouter()


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    return ReportService.from_settings(get_settings())


@router.post("/reports/run", response_model=ReportRunResponse)
def run_report(
    days: Optional[int] = Query(default=None, description="Period length in days; defaults to REPORT_DAYS"),
    service: ReportService = Depends(get_report_service),
) -> ReportRunResponse:
    if days is not None and not 1 <= days <= 365:
        raise HTTPException(status_code=400, detail="days must be between 1 and 365")
    return service.run_report(days)


@router.get("/reports/check")
def check(service: ReportService = Depends(get_report_service)) -> Dict[str, Any]:
    return service.run_system_check()

"""
Advisor router
- dry-run report over the requested schemas
- guarded apply of corrective statements
"""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from pg_advisor.config import settings
from pg_advisor.core.errors import CatalogPermissionError
from pg_advisor.core.formatter import corrective_statements
from pg_advisor.core.runner import run_advisor
from pg_advisor.deps import get_db_connection
from pg_advisor.models.finding import FindingCategory
from pg_advisor.models.options import RunOptions
from pg_advisor.models.report import AdvisorReport
from pg_advisor.smart_logger import SmartLogger


router = APIRouter(prefix="/advisor", tags=["Index Advisor"])


class ReportResponse(BaseModel):
    report: AdvisorReport
    statements: List[str] = []


class ApplyRequest(BaseModel):
    schemas: List[str] = Field(default_factory=list, description="Schemas to analyze; empty uses ADVISOR_SCHEMAS")
    apply: bool = Field(default=False, description="Execute corrective statements (false = dry run)")
    categories: Optional[List[FindingCategory]] = Field(default=None, description="Restrict apply to these categories")
    min_unused_size_bytes: Optional[int] = Field(default=None, ge=0)
    large_size_bytes: Optional[int] = Field(default=None, ge=0)
    rarely_used_max_scans: Optional[int] = Field(default=None, ge=1)


def _parse_schemas(raw: Optional[str]) -> List[str]:
    schemas = [s.strip() for s in (raw or "").split(",") if s.strip()]
    return schemas or settings.schema_list()


async def _run(db_conn, schemas: List[str], options: RunOptions) -> ReportResponse:
    try:
        report = await run_advisor(db_conn, schemas, options, require_access=True)
    except CatalogPermissionError as exc:
        SmartLogger.log(
            "WARNING",
            "advisor.api.permission_denied",
            category="advisor.api",
            params={"schemas": exc.schemas},
        )
        raise HTTPException(status_code=403, detail=str(exc))
    return ReportResponse(report=report, statements=corrective_statements(report.findings))


@router.get("/report", response_model=ReportResponse)
async def get_report(
    schemas: Optional[str] = Query(default=None, description="Comma-separated schema names"),
    db_conn=Depends(get_db_connection),
) -> ReportResponse:
    """Dry-run analysis; never executes a corrective statement."""
    options = RunOptions.from_settings(settings, dry_run=True)
    return await _run(db_conn, _parse_schemas(schemas), options)


@router.post("/apply", response_model=ReportResponse)
async def apply_recommendations(
    request: ApplyRequest,
    db_conn=Depends(get_db_connection),
) -> ReportResponse:
    """Analyze and, when ``apply`` is true, execute corrective statements one by one."""
    options = RunOptions.from_settings(
        settings,
        dry_run=not request.apply,
        min_unused_size_bytes=request.min_unused_size_bytes,
        large_size_bytes=request.large_size_bytes,
        rarely_used_max_scans=request.rarely_used_max_scans,
        apply_categories=frozenset(request.categories) if request.categories else None,
    )
    SmartLogger.log(
        "INFO",
        "advisor.api.apply",
        category="advisor.api",
        params={"schemas": request.schemas, "apply": request.apply},
    )
    return await _run(db_conn, request.schemas or settings.schema_list(), options)

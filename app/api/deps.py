from __future__ import annotations

from fastapi import Request

from app.core.records.orchestrator import CrudOrchestrator
from app.core.records.registry import CollectionRegistry
from app.core.reports.financial import FinancialReportService
from app.core.settings import Settings

REPORTS_COLLECTION = "FinancialReports"


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> CrudOrchestrator:
    return request.app.state.orchestrator


def get_registry(request: Request) -> CollectionRegistry:
    return request.app.state.orchestrator.registry


def get_report_service(request: Request) -> FinancialReportService:
    registry: CollectionRegistry = request.app.state.orchestrator.registry
    return FinancialReportService(registry.resolve(REPORTS_COLLECTION))

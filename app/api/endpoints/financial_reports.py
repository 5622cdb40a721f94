from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.responses import Response

from app.api.deps import get_report_service
from app.core.reports.financial import FinancialReportService, ReportImportError

router = APIRouter(prefix="/api/v1/financial-reports", tags=["financial_reports"])


class FinancialReportIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str
    income: Decimal = Field(ge=0)
    expense: Decimal = Field(ge=0)


class FinancialReportReplace(FinancialReportIn):
    id: int


@router.get("/")
def list_reports(
    search: Optional[str] = Query(default=None),
    sort_field: Optional[str] = Query(default=None),
    sort_order: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=10),
    service: FinancialReportService = Depends(get_report_service),
):
    result = service.search(
        search=search,
        sort_field=sort_field,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    return JSONResponse(content=jsonable_encoder(result.to_dict()))


@router.get("/export")
def export_reports(service: FinancialReportService = Depends(get_report_service)):
    return Response(
        content=service.export_csv().encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="financial_reports.csv"'},
    )


@router.post("/import")
async def import_reports(request: Request, service: FinancialReportService = Depends(get_report_service)):
    raw = await request.body()
    try:
        count = service.import_csv(raw.decode("utf-8-sig"))
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Invalid file format")
    except ReportImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": f"{count} records imported successfully"}


@router.get("/{report_id}")
def get_report(report_id: int, service: FinancialReportService = Depends(get_report_service)):
    rec = service.get(report_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="Financial report not found")
    return JSONResponse(content=jsonable_encoder(rec))


@router.post("/", status_code=201)
def create_report(
    body: FinancialReportIn,
    request: Request,
    service: FinancialReportService = Depends(get_report_service),
):
    rec = service.create(title=body.title, description=body.description, income=body.income, expense=body.expense)
    location = f"{request.url.path.rstrip('/')}/{rec['id']}"
    return JSONResponse(status_code=201, content=jsonable_encoder(rec), headers={"Location": location})


@router.put("/{report_id}", status_code=204)
def replace_report(
    report_id: int,
    body: FinancialReportReplace,
    service: FinancialReportService = Depends(get_report_service),
):
    if body.id != report_id:
        raise HTTPException(status_code=400, detail="Report id in body does not match the path")
    found = service.replace(
        report_id, title=body.title, description=body.description, income=body.income, expense=body.expense
    )
    if not found:
        raise HTTPException(status_code=404, detail="Financial report not found")
    return Response(status_code=204)


@router.delete("/{report_id}", status_code=204)
def delete_report(report_id: int, service: FinancialReportService = Depends(get_report_service)):
    if not service.delete(report_id):
        raise HTTPException(status_code=404, detail="Financial report not found")
    return Response(status_code=204)

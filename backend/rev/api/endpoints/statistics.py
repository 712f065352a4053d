from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps
from rev.services.exceptions import PDFRenderError
from rev.services.pdf import render_pdf

router = APIRouter()


@router.get("/", response_model=schemas.StatisticsReport)
async def read_statistics(
    *,
    db: AsyncSession = Depends(get_db),
    months: int = Query(12, ge=1, le=24),
    current_user: models.User = Depends(deps.get_current_active_user),
):
    """
    Monthly revenue, expenses and profit over the last ``months`` months.
    """
    return await crud.statistics.get_statistics(
        db, user_id=current_user.id, months=months, currency=current_user.currency
    )


@router.get("/pdf", response_class=Response)
async def download_statistics_pdf(
    *,
    db: AsyncSession = Depends(get_db),
    months: int = Query(12, ge=1, le=24),
    current_user: models.User = Depends(deps.get_current_active_user),
):
    report = await crud.statistics.get_statistics(
        db, user_id=current_user.id, months=months, currency=current_user.currency
    )
    company = await crud.company_settings.get_company_settings(db, user_id=current_user.id)
    now = datetime.now(timezone.utc)
    try:
        pdf_bytes = await render_pdf("statistics_report.html", {
            "report": report,
            "company": company,
            "user": current_user,
            "generated_at": now,
        })
    except PDFRenderError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    filename = f"Statistics-{now:%Y-%m-%d}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

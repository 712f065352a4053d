# backend/rev/api/endpoints/invoices.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import logging
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps
from rev.core.config import settings
from rev.services import email as email_service
from rev.services.exceptions import EmailDeliveryError, PDFRenderError, WaveAPIError
from rev.services.notifications import notify
from rev.services.pdf import render_pdf, render_template
from rev.services.wave import WaveClient, format_wave_amount, get_wave_currency, run_blocking
from rev.services.wave_webhook import parse_wave_timestamp

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_owned_invoice(db: AsyncSession, invoice_id: uuid.UUID, user: models.User) -> models.Invoice:
    invoice = await crud.invoice.get_invoice(db, invoice_id=invoice_id, user_id=user.id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


async def _company_context(db: AsyncSession, user: models.User) -> schemas.CompanySettings:
    company = await crud.company_settings.get_company_settings(db, user_id=user.id)
    if company is None:
        return schemas.CompanySettings(user_id=user.id, name=user.company_name, address=user.address,
                                       phone=user.phone, email=user.email, logo=user.company_logo)
    return schemas.CompanySettings.model_validate(company)


async def _invoice_pdf(db: AsyncSession, invoice: models.Invoice, user: models.User) -> bytes:
    context = {
        "invoice": invoice,
        "items": invoice.items,
        "company": await _company_context(db, user),
        "user": user,
        "is_proforma": invoice.type == schemas.InvoiceTypeEnum.PROFORMA,
    }
    try:
        return await render_pdf("invoice.html", context)
    except PDFRenderError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _pdf_filename(invoice: models.Invoice) -> str:
    prefix = "Proforma" if invoice.type == schemas.InvoiceTypeEnum.PROFORMA else "Invoice"
    return f"{prefix}-{invoice.invoice_number.replace('/', '-')}.pdf"


async def _open_payment_link(
    db: AsyncSession, invoice: models.Invoice, user: models.User, wave: WaveClient
) -> models.Invoice:
    """
    Create the Wave checkout session for ``invoice``, store its launch URL and
    record the checkout as a Wave assignment.
    """
    return_url = f"{settings.SERVER_HOST}/invoices/{invoice.id}?invoice_number={invoice.invoice_number}"
    payload = {
        "amount": format_wave_amount(invoice.amount),
        "currency": get_wave_currency(invoice.currency),
        "client_reference": str(invoice.id),
        "success_url": f"{return_url}&payment=success",
        "error_url": f"{return_url}&payment=error",
    }
    try:
        checkout = await run_blocking(wave.create_checkout_session, payload)
    except WaveAPIError as e:
        await notify(
            db, user=user,
            type=schemas.NotificationTypeEnum.WAVE_PAYMENT_FAILED,
            title="Échec du lien de paiement Wave",
            message=f"Impossible de créer le lien de paiement pour la facture {invoice.invoice_number}: {e.message}",
            related_type="invoice", related_id=invoice.id, details={"error": e.payload},
        )
        raise

    invoice = await crud.invoice.set_payment_link(
        db, db_invoice=invoice, payment_link=checkout["wave_launch_url"], wave_checkout_id=checkout["id"]
    )
    try:
        await crud.wave_assignment.create_assignment(
            db,
            user_id=user.id,
            transaction_id=checkout["id"],
            type=schemas.WaveAssignmentTypeEnum.CHECKOUT,
            description=f"Paiement facture {invoice.invoice_number}",
            amount=invoice.amount,
            currency=get_wave_currency(invoice.currency),
            invoice_id=invoice.id,
            project_id=invoice.project_id,
            client_id=invoice.client_id,
            wave_data=checkout,
        )
    except crud.wave_assignment.TransactionAlreadyAssignedError:
        logger.info(f"Checkout {checkout['id']} already recorded for invoice {invoice.id}")
    return invoice


async def _conversion_status(db: AsyncSession, proforma: models.Invoice) -> dict:
    conversions = await crud.invoice.get_proforma_conversions(db, proforma=proforma)
    totals = crud.invoice.conversion_totals(proforma, conversions)
    totals["invoices"] = [schemas.InvoiceSummary.model_validate(invoice) for invoice in conversions]
    return totals


async def _get_public_invoice(db: AsyncSession, invoice_id: uuid.UUID, invoice_number: str) -> models.Invoice:
    # The invoice number acts as the payer's shared secret
    invoice = await crud.invoice.get_invoice_by_id(db, invoice_id=invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    if invoice.invoice_number != invoice_number:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return invoice


async def _public_view(db: AsyncSession, invoice: models.Invoice) -> schemas.PublicInvoice:
    project = None
    if invoice.project_id:
        project = await crud.project.get_project(db, project_id=invoice.project_id, user_id=invoice.user_id)
    return schemas.PublicInvoice(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        type=invoice.type,
        status=invoice.status,
        amount=invoice.amount,
        currency=invoice.currency,
        due_date=invoice.due_date,
        paid_date=invoice.paid_date,
        client_name=invoice.client_name,
        project_name=project.name if project else None,
        payment_link=invoice.payment_link,
        created_at=invoice.created_at,
    )


@router.post("/", response_model=schemas.Invoice, status_code=status.HTTP_201_CREATED)
async def create_new_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    invoice_in: schemas.InvoiceCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Create an invoice or proforma. The client snapshot comes from the given
    client, or from the project's client.
    """
    project = await deps.ensure_project_owned(db, invoice_in.project_id, current_user.id)
    client = await deps.ensure_client_owned(db, invoice_in.client_id, current_user.id)
    if client is None and project is not None and project.client_id:
        client = await crud.client.get_client(db, client_id=project.client_id, user_id=current_user.id)

    invoice = await crud.invoice.create_invoice_with_items(
        db, invoice_in=invoice_in, owner_id=current_user.id, client=client
    )
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.INVOICE_CREATED,
        description=f"Invoice {invoice.invoice_number} created",
        invoice_id=invoice.id, project_id=invoice.project_id, client_id=invoice.client_id,
    )
    return invoice


@router.post("/advance-payment", response_model=schemas.AdvancePaymentResult, status_code=status.HTTP_201_CREATED)
async def create_advance_payment(
    *,
    db: AsyncSession = Depends(get_db),
    advance_in: schemas.AdvancePaymentCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Invoice a down payment on a project, optionally with a Wave payment link.
    """
    project = await deps.ensure_project_owned(db, advance_in.project_id, current_user.id)
    wave = deps.wave_client_for(current_user) if advance_in.generate_payment_link else None
    try:
        client = None
        if project.client_id:
            client = await crud.client.get_client(db, client_id=project.client_id, user_id=current_user.id)
        invoice_in = schemas.InvoiceCreate(
            type=schemas.InvoiceTypeEnum.INVOICE,
            project_id=project.id,
            notes=advance_in.description or f"Acompte pour le projet {project.name}",
            client_name=None if client else project.name,
            client_email=advance_in.client_email,
            items=[schemas.InvoiceItemCreate(
                description=f"Acompte - {project.name}", quantity=1, unit_price=advance_in.amount
            )],
        )
        invoice = await crud.invoice.create_invoice_with_items(
            db, invoice_in=invoice_in, owner_id=current_user.id, client=client
        )
        await crud.activity.record(
            db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.INVOICE_CREATED,
            description=f"Advance invoice {invoice.invoice_number} created",
            invoice_id=invoice.id, project_id=invoice.project_id, client_id=invoice.client_id,
        )

        message = "Advance payment invoice created"
        if wave is not None:
            try:
                invoice = await _open_payment_link(db, invoice, current_user, wave)
                message = "Advance payment invoice created with a Wave payment link"
            except WaveAPIError as e:
                logger.warning(f"Payment link for advance invoice {invoice.id} failed: {e}")
                message = f"Advance payment invoice created, but the Wave payment link failed: {e.message}"
    finally:
        if wave is not None:
            wave.close()

    return schemas.AdvancePaymentResult(
        invoice=schemas.Invoice.model_validate(invoice), payment_link=invoice.payment_link, message=message
    )


@router.get("/", response_model=List[schemas.Invoice])
async def read_invoices(
    *,
    db: AsyncSession = Depends(get_db),
    project_id: Optional[uuid.UUID] = None,
    status_filter: Optional[schemas.InvoiceStatusEnum] = Query(None, alias="status"),
    invoice_type: Optional[schemas.InvoiceTypeEnum] = Query(None, alias="type"),
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.invoice.get_invoices_by_user(
        db, user_id=current_user.id, project_id=project_id, status=status_filter,
        invoice_type=invoice_type, skip=skip, limit=limit,
    )


@router.get("/{invoice_id}", response_model=schemas.Invoice)
async def read_invoice_by_id(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_invoice(db, invoice_id, current_user)


@router.put("/{invoice_id}", response_model=schemas.Invoice)
async def update_existing_invoice(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    invoice_in: schemas.InvoiceUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_invoice = await _get_owned_invoice(db, invoice_id, current_user)
    return await crud.invoice.update_invoice(db, db_invoice=db_invoice, invoice_in=invoice_in)


@router.delete("/{invoice_id}", response_model=schemas.Invoice)
async def delete_existing_invoice(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_invoice = await _get_owned_invoice(db, invoice_id, current_user)
    deleted_invoice_data = schemas.Invoice.model_validate(db_invoice)
    await crud.invoice.delete_invoice(db, db_invoice=db_invoice)
    return deleted_invoice_data


@router.post("/{invoice_id}/mark-paid", response_model=schemas.Invoice)
async def mark_invoice_as_paid(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_invoice = await _get_owned_invoice(db, invoice_id, current_user)
    if db_invoice.status == schemas.InvoiceStatusEnum.PAID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice is already paid")

    invoice = await crud.invoice.mark_invoice_paid(db, db_invoice=db_invoice)
    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.INVOICE_PAID,
        title="Facture payée",
        message=f"La facture {invoice.invoice_number} a été marquée comme payée.",
        related_type="invoice", related_id=invoice.id, action_url=f"/invoices/{invoice.id}",
    )
    return invoice


@router.post("/{invoice_id}/convert", response_model=schemas.Invoice, status_code=status.HTTP_201_CREATED)
async def convert_proforma(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    convert_in: Optional[schemas.InvoiceConvert] = None,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Turn a proforma into a numbered invoice. The proforma is cancelled.
    """
    proforma = await _get_owned_invoice(db, invoice_id, current_user)
    if proforma.type != schemas.InvoiceTypeEnum.PROFORMA:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proforma not found")
    try:
        invoice = await crud.invoice.convert_proforma_to_invoice(
            db, proforma=proforma, mark_as_paid=bool(convert_in and convert_in.mark_as_paid)
        )
    except crud.invoice.InvoiceAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.INVOICE_CREATED,
        description=f"Invoice {invoice.invoice_number} created from proforma {proforma.invoice_number}",
        invoice_id=invoice.id, project_id=invoice.project_id, client_id=invoice.client_id,
    )
    return invoice


@router.post(
    "/{invoice_id}/partial-convert",
    response_model=schemas.PartialConversionResult,
    status_code=status.HTTP_201_CREATED,
)
async def partially_convert_proforma(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    convert_in: schemas.PartialConvertRequest,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Invoice part of a proforma. The proforma is cancelled once the invoices
    issued from it cover its amount.
    """
    proforma = await _get_owned_invoice(db, invoice_id, current_user)
    if proforma.type != schemas.InvoiceTypeEnum.PROFORMA:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proforma not found")
    if proforma.status == schemas.InvoiceStatusEnum.CANCELLED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Proforma is already fully converted or cancelled")
    if crud.invoice.calculate_invoice_amount(convert_in.items) <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice amount must be positive")

    client = None
    if proforma.project_id:
        project = await crud.project.get_project(db, project_id=proforma.project_id, user_id=current_user.id)
        if project and project.client_id:
            client = await crud.client.get_client(db, client_id=project.client_id, user_id=current_user.id)

    invoice = await crud.invoice.partially_convert_proforma(
        db, proforma=proforma, convert_in=convert_in, client=client
    )
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.INVOICE_CREATED,
        description=f"Invoice {invoice.invoice_number} created from part of proforma {proforma.invoice_number}",
        invoice_id=invoice.id, project_id=invoice.project_id, client_id=invoice.client_id,
    )
    conversion = await _conversion_status(db, proforma)
    return schemas.PartialConversionResult(**conversion, invoice=schemas.Invoice.model_validate(invoice))


@router.get("/{invoice_id}/conversion-status", response_model=schemas.ConversionStatus)
async def read_conversion_status(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    proforma = await _get_owned_invoice(db, invoice_id, current_user)
    if proforma.type != schemas.InvoiceTypeEnum.PROFORMA:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proforma not found")
    return await _conversion_status(db, proforma)


@router.get("/{invoice_id}/pdf", response_class=Response)
async def download_invoice_pdf(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
):
    """
    Download an invoice or proforma as a PDF laid out with the company settings.
    """
    invoice = await _get_owned_invoice(db, invoice_id, current_user)
    pdf_bytes = await _invoice_pdf(db, invoice, current_user)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={_pdf_filename(invoice)}"}
    )


@router.get("/{invoice_id}/public", response_model=schemas.PublicInvoice)
async def read_public_invoice(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    invoice_number: str = Query(...),
) -> Any:
    """
    Payer-facing view of an invoice. No login; the invoice number must match.
    """
    invoice = await _get_public_invoice(db, invoice_id, invoice_number)
    return await _public_view(db, invoice)


@router.get("/{invoice_id}/pdf-public", response_class=Response)
async def download_public_invoice_pdf(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    invoice_number: str = Query(...),
):
    invoice = await _get_public_invoice(db, invoice_id, invoice_number)
    owner = await crud.user.get_user(db, user_id=invoice.user_id)
    pdf_bytes = await _invoice_pdf(db, invoice, owner)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={_pdf_filename(invoice)}"}
    )


@router.post("/{invoice_id}/mark-paid-public", response_model=schemas.PublicMarkPaidResult)
async def mark_invoice_paid_public(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    paid_in: schemas.PublicMarkPaid,
) -> Any:
    """
    Called from the Wave success page. The checkout must be the one stored on
    the invoice and Wave must report it as succeeded.
    """
    invoice = await crud.invoice.get_invoice_by_id(db, invoice_id=invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    if not invoice.wave_checkout_id or invoice.wave_checkout_id != paid_in.wave_checkout_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Checkout does not match this invoice")
    if invoice.status == schemas.InvoiceStatusEnum.PAID:
        return schemas.PublicMarkPaidResult(status="already_paid", invoice=await _public_view(db, invoice))

    owner = await crud.user.get_user(db, user_id=invoice.user_id)
    wave = deps.wave_client_for(owner)
    try:
        checkout = await run_blocking(wave.get_checkout_session, paid_in.wave_checkout_id)
    finally:
        wave.close()
    if checkout.get("payment_status") != "succeeded":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment has not succeeded")

    invoice = await crud.invoice.mark_invoice_paid(
        db, db_invoice=invoice,
        paid_date=parse_wave_timestamp(checkout.get("when_completed")),
        wave_checkout_id=paid_in.wave_checkout_id,
    )
    await notify(
        db, user=owner,
        type=schemas.NotificationTypeEnum.INVOICE_PAID,
        title="Facture payée",
        message=f"La facture {invoice.invoice_number} a été payée par votre client (Wave).",
        related_type="invoice", related_id=invoice.id, action_url=f"/invoices/{invoice.id}",
        details={"wave_checkout_id": paid_in.wave_checkout_id, "transaction_id": paid_in.transaction_id},
    )
    return schemas.PublicMarkPaidResult(status="paid", invoice=await _public_view(db, invoice))


@router.post("/{invoice_id}/payment-link", response_model=schemas.PaymentLinkOut)
async def create_payment_link(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    """
    Open a Wave checkout session for the invoice amount and keep its link.
    """
    invoice = await _get_owned_invoice(db, invoice_id, current_user)
    if invoice.status in (schemas.InvoiceStatusEnum.PAID, schemas.InvoiceStatusEnum.CANCELLED):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invoice is {invoice.status.value.lower()}")

    invoice = await _open_payment_link(db, invoice, current_user, wave)
    return schemas.PaymentLinkOut(
        invoice_id=invoice.id, payment_link=invoice.payment_link, wave_checkout_id=invoice.wave_checkout_id
    )


@router.post("/{invoice_id}/send", response_model=schemas.InvoiceSendResult)
async def send_invoice_by_email(
    invoice_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Email the invoice PDF to the client through the user's SMTP account.
    """
    invoice = await _get_owned_invoice(db, invoice_id, current_user)
    if not invoice.client_email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This invoice has no client email")
    if not current_user.smtp_configured:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SMTP is not configured")

    pdf_bytes = await _invoice_pdf(db, invoice, current_user)
    company = await _company_context(db, current_user)
    html_body = render_template("invoice_email.html", {"invoice": invoice, "company": company, "user": current_user})
    try:
        await email_service.send_email(
            current_user,
            to=invoice.client_email,
            subject=f"{'Proforma' if invoice.type == schemas.InvoiceTypeEnum.PROFORMA else 'Facture'} {invoice.invoice_number}",
            html_body=html_body,
            attachment=pdf_bytes,
            attachment_name=_pdf_filename(invoice),
        )
    except EmailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Email could not be sent: {e}")

    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.INVOICE_SENT,
        description=f"Invoice {invoice.invoice_number} sent to {invoice.client_email}",
        invoice_id=invoice.id, project_id=invoice.project_id, client_id=invoice.client_id,
    )
    return schemas.InvoiceSendResult(sent=True, recipient=invoice.client_email)

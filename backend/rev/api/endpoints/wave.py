# backend/rev/api/endpoints/wave.py
"""
Wave mobile-money operations on behalf of the current user: balance,
checkout sessions, payouts and the reconciliation of Wave transactions
with local invoices and expenses.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps
from rev.core.config import settings
from rev.core.security import generate_webhook_secret
from rev.services.exceptions import WaveAPIError
from rev.services.notifications import notify
from rev.services.pdf import format_money
from rev.services.wave import WaveClient, format_wave_amount, get_wave_currency, run_blocking
from rev.services.wave_webhook import parse_wave_timestamp

logger = logging.getLogger(__name__)

router = APIRouter()

PAYOUT_REVERSAL_WINDOW = timedelta(days=3)


def _clean(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _payout_payload(payout_in: schemas.PayoutCreate) -> Dict[str, Any]:
    return _clean({
        "currency": get_wave_currency(payout_in.currency),
        "receive_amount": format_wave_amount(payout_in.receive_amount),
        "mobile": payout_in.mobile,
        "name": payout_in.name,
        "national_id": payout_in.national_id,
        "payment_reason": payout_in.payment_reason,
        "client_reference": payout_in.client_reference,
        "aggregated_merchant_id": payout_in.aggregated_merchant_id,
    })


async def _notify_wave_failure(db: AsyncSession, user: models.User, title: str, error: WaveAPIError) -> None:
    await notify(
        db, user=user,
        type=schemas.NotificationTypeEnum.WAVE_PAYMENT_FAILED,
        title=title,
        message=error.message,
        related_type="wave",
        details={"status_code": error.status_code, "error": error.payload},
    )


# --- Balance ---

@router.get("/balance")
async def read_balance(wave: WaveClient = Depends(deps.get_wave_client)) -> Any:
    return await run_blocking(wave.get_balance)


# --- Checkout sessions ---

@router.post("/checkout/sessions", response_model=schemas.CheckoutSessionResult, status_code=status.HTTP_201_CREATED)
async def create_checkout_session(
    *,
    db: AsyncSession = Depends(get_db),
    checkout_in: schemas.CheckoutSessionCreate,
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    """
    Open a Wave checkout session and record it locally as a ``checkout`` assignment.
    """
    await deps.ensure_project_owned(db, checkout_in.project_id, current_user.id)
    await deps.ensure_client_owned(db, checkout_in.client_id, current_user.id)

    payload = _clean({
        "amount": format_wave_amount(checkout_in.amount),
        "currency": get_wave_currency(checkout_in.currency),
        "success_url": str(checkout_in.success_url),
        "error_url": str(checkout_in.error_url),
        "client_reference": checkout_in.client_reference,
        "restrict_payer_mobile": checkout_in.restrict_payer_mobile,
        "aggregated_merchant_id": checkout_in.aggregated_merchant_id,
    })
    try:
        checkout = await run_blocking(wave.create_checkout_session, payload)
    except WaveAPIError as e:
        await _notify_wave_failure(db, current_user, "Échec de la création du paiement Wave", e)
        raise

    try:
        assignment = await crud.wave_assignment.create_assignment(
            db,
            user_id=current_user.id,
            transaction_id=checkout["id"],
            type=schemas.WaveAssignmentTypeEnum.CHECKOUT,
            description=checkout_in.description or f"Session de paiement {checkout['id']}",
            amount=checkout_in.amount,
            currency=payload["currency"],
            project_id=checkout_in.project_id,
            client_id=checkout_in.client_id,
            wave_data=checkout,
        )
    except crud.wave_assignment.TransactionAlreadyAssignedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return {"checkout": checkout, "assignment_id": assignment.id}


@router.get("/checkout/sessions/search")
async def search_checkout_sessions(
    client_reference: Optional[str] = None,
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    if not client_reference:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="client_reference is required")
    return await run_blocking(wave.search_checkout_sessions, client_reference)


@router.get("/checkout/sessions/{session_id}")
async def read_checkout_session(session_id: str, wave: WaveClient = Depends(deps.get_wave_client)) -> Any:
    return await run_blocking(wave.get_checkout_session, session_id)


@router.post("/checkout/sessions/{session_id}/refund")
async def refund_checkout_session(
    session_id: str,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    """
    Refund a paid checkout session. Only sessions whose payment succeeded qualify.
    """
    checkout = await run_blocking(wave.get_checkout_session, session_id)
    if checkout.get("payment_status") != "succeeded":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only checkout sessions with a succeeded payment can be refunded",
        )
    result = await run_blocking(wave.refund_checkout_session, session_id)
    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.SUCCESS,
        title="Remboursement Wave effectué",
        message=f"Le paiement {session_id} de {format_money(checkout.get('amount'), checkout.get('currency') or 'XOF')} a été remboursé.",
        related_type="wave_checkout", related_id=session_id,
    )
    return {"status": "refunded", "checkout_id": session_id, "result": result}


@router.post("/checkout/sessions/{session_id}/expire")
async def expire_checkout_session(session_id: str, wave: WaveClient = Depends(deps.get_wave_client)) -> Any:
    result = await run_blocking(wave.expire_checkout_session, session_id)
    return {"status": "expired", "checkout_id": session_id, "result": result}


# --- Payouts ---

@router.post("/payouts", response_model=schemas.PayoutResult, status_code=status.HTTP_201_CREATED)
async def create_payout(
    *,
    db: AsyncSession = Depends(get_db),
    payout_in: schemas.PayoutCreate,
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    """
    Send money to a mobile wallet. The payout is booked as an expense.
    """
    await deps.ensure_project_owned(db, payout_in.project_id, current_user.id)
    await deps.ensure_client_owned(db, payout_in.client_id, current_user.id)

    idempotency_key = str(uuid.uuid4())
    try:
        payout = await run_blocking(wave.create_payout, _payout_payload(payout_in), idempotency_key)
    except WaveAPIError as e:
        await _notify_wave_failure(db, current_user, "Échec du paiement Wave", e)
        raise

    is_refund = payout_in.type == schemas.PayoutTypeEnum.CLIENT_REFUND
    label = "Remboursement client" if is_refund else "Paiement Wave"
    recipient = payout_in.name or payout_in.mobile
    fee = abs(float(payout.get("fee") or 0))
    currency = get_wave_currency(payout_in.currency)

    expense = models.Expense(
        id=uuid.uuid4(),
        description=f"{label} - {recipient}",
        amount=payout_in.receive_amount + fee,
        category="Wave",
        date=datetime.now(timezone.utc),
        notes=payout_in.payment_reason,
        type=schemas.ExpenseTypeEnum.PROJECT if payout_in.project_id else schemas.ExpenseTypeEnum.GENERAL,
        project_id=payout_in.project_id,
        user_id=current_user.id,
    )
    try:
        assignment = await crud.wave_assignment.create_assignment(
            db,
            user_id=current_user.id,
            related=[expense],
            transaction_id=payout["id"],
            type=schemas.WaveAssignmentTypeEnum.PAYOUT,
            description=expense.description,
            amount=payout_in.receive_amount,
            fee=fee,
            currency=currency,
            counterparty_name=payout_in.name,
            counterparty_mobile=payout_in.mobile,
            notes=payout_in.payment_reason,
            expense_id=expense.id,
            project_id=payout_in.project_id,
            client_id=payout_in.client_id,
            wave_data=payout,
        )
    except crud.wave_assignment.TransactionAlreadyAssignedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.PROVIDER_PAYMENT_COMPLETED,
        title=f"{label} envoyé",
        message=f"{format_money(payout_in.receive_amount, currency)} envoyés à {recipient}.",
        related_type="expense", related_id=expense.id, action_url=f"/expenses/{expense.id}",
        details={"payout_id": payout["id"], "status": payout.get("status")},
    )
    return {"payout": payout, "expense_id": expense.id, "assignment_id": assignment.id}


@router.get("/payouts/{payout_id}")
async def read_payout(payout_id: str, wave: WaveClient = Depends(deps.get_wave_client)) -> Any:
    return await run_blocking(wave.get_payout, payout_id)


@router.post("/payouts/{payout_id}/reverse")
async def reverse_payout(
    payout_id: str,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    """
    Reverse a succeeded payout. Wave only allows it within three days.
    """
    payout = await run_blocking(wave.get_payout, payout_id)
    payout_status = payout.get("status")
    if payout_status == "reversed":
        return {"status": "already_reversed", "payout": payout}
    if payout_status != "succeeded":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only succeeded payouts can be reversed (status: {payout_status})",
        )

    sent_at = parse_wave_timestamp(payout.get("timestamp"))
    if sent_at and datetime.now(timezone.utc) - sent_at > PAYOUT_REVERSAL_WINDOW:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "payout-reversal-time-limit-exceeded",
                "message": "Payouts can only be reversed within 3 days.",
            },
        )

    result = await run_blocking(wave.reverse_payout, payout_id)
    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.INFO,
        title="Paiement Wave annulé",
        message=f"Le paiement {payout_id} a été annulé.",
        related_type="wave_payout", related_id=payout_id,
    )
    return {"status": "reversed", "payout": result or payout}


@router.post("/payout-batch", status_code=status.HTTP_201_CREATED)
async def create_payout_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_in: schemas.PayoutBatchCreate,
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    payouts = [_payout_payload(payout_in) for payout_in in batch_in.payouts]
    try:
        return await run_blocking(wave.create_payout_batch, payouts, str(uuid.uuid4()))
    except WaveAPIError as e:
        await _notify_wave_failure(db, current_user, "Échec du lot de paiements Wave", e)
        raise


@router.get("/payout-batch/{batch_id}")
async def read_payout_batch(batch_id: str, wave: WaveClient = Depends(deps.get_wave_client)) -> Any:
    return await run_blocking(wave.get_payout_batch, batch_id)


# --- Transactions ---

@router.get("/transactions", response_model=schemas.TransactionList)
async def read_transactions(
    *,
    db: AsyncSession = Depends(get_db),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    first: Optional[int] = Query(None, ge=1, le=1000),
    after: Optional[str] = None,
    current_user: models.User = Depends(deps.get_current_active_user),
    wave: WaveClient = Depends(deps.get_wave_client),
) -> Any:
    """
    Wave transactions of one day, each with the local record it is assigned to, if any.
    """
    date = date or datetime.now(timezone.utc).strftime("%Y-%m-%d")
    result = await run_blocking(wave.list_transactions, date, first, after)
    items: List[Dict[str, Any]] = result.get("items") or []

    transaction_ids = [item.get("transaction_id") for item in items if item.get("transaction_id")]
    assignments = await crud.wave_assignment.get_assignments_for_transactions(
        db, transaction_ids=transaction_ids, user_id=current_user.id
    )
    for item in items:
        assignment = assignments.get(item.get("transaction_id"))
        item["local_assignment"] = (
            schemas.WaveTransactionAssignment.model_validate(assignment).model_dump(mode="json")
            if assignment else None
        )
    return {"date": date, "items": items, "page_info": result.get("page_info")}


@router.get("/assignments", response_model=List[schemas.WaveTransactionAssignment])
async def read_assignments(
    *,
    db: AsyncSession = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    return await crud.wave_assignment.get_assignments(db, user_id=current_user.id, limit=limit)


@router.post(
    "/transactions/{transaction_id}/assign",
    response_model=schemas.WaveTransactionAssignment,
    status_code=status.HTTP_201_CREATED,
)
async def assign_transaction(
    transaction_id: str,
    *,
    db: AsyncSession = Depends(get_db),
    assign_in: schemas.TransactionAssign,
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Book a Wave transaction locally: revenue becomes a paid invoice, an
    expense becomes an expense. A transaction can only be assigned once.
    """
    if assign_in.type not in (schemas.WaveAssignmentTypeEnum.REVENUE, schemas.WaveAssignmentTypeEnum.EXPENSE):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="type must be 'revenue' or 'expense'")
    if await crud.wave_assignment.get_assignment(db, transaction_id=transaction_id, user_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transaction is already assigned")

    project = await deps.ensure_project_owned(db, assign_in.project_id, current_user.id)
    client = await deps.ensure_client_owned(db, assign_in.client_id, current_user.id)

    data = assign_in.wave_transaction_data
    try:
        amount = abs(float(data.get("amount") or 0))
        fee = abs(float(data.get("fee") or 0))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Transaction amount is not a number")
    currency = get_wave_currency(data.get("currency"))
    occurred_at = parse_wave_timestamp(data.get("timestamp")) or datetime.now(timezone.utc)
    counterparty_name = data.get("counterparty_name")
    counterparty_mobile = data.get("counterparty_mobile")
    description = assign_in.description or f"Transaction Wave {transaction_id}"

    link_fields: Dict[str, Any] = {}
    if assign_in.type == schemas.WaveAssignmentTypeEnum.REVENUE:
        record = models.Invoice(
            id=uuid.uuid4(),
            invoice_number=f"WAVE-{transaction_id}",
            type=schemas.InvoiceTypeEnum.INVOICE,
            status=schemas.InvoiceStatusEnum.PAID,
            amount=amount,
            currency=currency,
            paid_date=occurred_at,
            notes=assign_in.notes,
            client_name=client.name if client else counterparty_name,
            client_email=client.email if client else None,
            client_address=client.address if client else None,
            client_phone=client.phone if client else counterparty_mobile,
            project_id=project.id if project else None,
            client_id=client.id if client else None,
            user_id=current_user.id,
        )
        record.items = [models.InvoiceItem(description=description, quantity=1.0, unit_price=amount, total=amount)]
        link_fields["invoice_id"] = record.id
        notification_message = f"Revenu de {format_money(amount, currency)} enregistré (facture {record.invoice_number})."
    else:
        record = models.Expense(
            id=uuid.uuid4(),
            description=description,
            amount=amount,
            category=assign_in.category or "Wave",
            date=occurred_at,
            notes=assign_in.notes,
            type=schemas.ExpenseTypeEnum.PROJECT if project else schemas.ExpenseTypeEnum.GENERAL,
            project_id=project.id if project else None,
            user_id=current_user.id,
        )
        link_fields["expense_id"] = record.id
        notification_message = f"Dépense de {format_money(amount, currency)} enregistrée: {description}."

    try:
        assignment = await crud.wave_assignment.create_assignment(
            db,
            user_id=current_user.id,
            related=[record],
            transaction_id=transaction_id,
            type=assign_in.type,
            description=description,
            amount=amount,
            fee=fee,
            currency=currency,
            timestamp=occurred_at,
            counterparty_name=counterparty_name,
            counterparty_mobile=counterparty_mobile,
            notes=assign_in.notes,
            project_id=assign_in.project_id,
            client_id=assign_in.client_id,
            wave_data=data,
            **link_fields,
        )
    except crud.wave_assignment.TransactionAlreadyAssignedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.WAVE_TRANSACTION_ASSIGNED,
        description=f"Wave transaction {transaction_id} assigned as {assign_in.type.value}",
        project_id=assign_in.project_id, client_id=assign_in.client_id, invoice_id=link_fields.get("invoice_id"),
        details={"transaction_id": transaction_id, "amount": amount, "currency": currency},
    )
    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.SUCCESS,
        title="Transaction Wave assignée",
        message=notification_message,
        related_type="wave_transaction", related_id=transaction_id,
    )
    return assignment


@router.delete("/transactions/{transaction_id}/assign")
async def unassign_transaction(
    transaction_id: str,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Remove the assignment. The invoice or expense it created is kept.
    """
    assignment = await crud.wave_assignment.get_assignment(db, transaction_id=transaction_id, user_id=current_user.id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    await crud.wave_assignment.delete_assignment(db, db_obj=assignment)
    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.INFO,
        title="Assignation supprimée",
        message=f"La transaction Wave {transaction_id} n'est plus assignée.",
        related_type="wave_transaction", related_id=transaction_id,
    )
    return {"deleted": True, "transaction_id": transaction_id}


# --- Webhook secret ---

@router.post("/webhook-secret", response_model=schemas.WebhookSecretOut)
async def regenerate_webhook_secret(
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Generate a new webhook signing secret. It is shown only in this response.
    """
    secret = generate_webhook_secret()
    await crud.user.set_webhook_secret(db, db_obj=current_user, secret=secret)
    return {"webhook_secret": secret, "webhook_url": f"{settings.SERVER_HOST}{settings.API_V1_STR}/webhooks/wave"}

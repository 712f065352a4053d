# backend/rev/crud/crud_invoice.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import or_
from datetime import datetime, timezone
from typing import List, Optional
import time
import uuid

from rev.models.invoice import Invoice as InvoiceModel, InvoiceItem as InvoiceItemModel
from rev.models.client import Client as ClientModel
from rev.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceItemCreate,
    InvoiceStatusEnum,
    InvoiceTypeEnum,
    PartialConvertRequest,
)


class InvoiceAlreadyExistsError(ValueError):
    """The project already carries a non-cancelled invoice."""


def calculate_item_total(item_data: InvoiceItemCreate) -> float:
    return round(float(item_data.quantity) * float(item_data.unit_price), 2)


def calculate_invoice_amount(items: List[InvoiceItemCreate]) -> float:
    return round(sum(calculate_item_total(item) for item in items), 2)


def generate_invoice_number(invoice_type: InvoiceTypeEnum, now: Optional[datetime] = None) -> str:
    """
    PRO-YYYYMM-NNNNNN or INV-YYYYMM-NNNNNN, the suffix being the last six
    digits of the millisecond clock.
    """
    now = now or datetime.now(timezone.utc)
    prefix = "PRO" if invoice_type == InvoiceTypeEnum.PROFORMA else "INV"
    suffix = str(int(time.time() * 1000))[-6:]
    return f"{prefix}-{now:%Y%m}-{suffix}"


async def generate_final_invoice_number(db: AsyncSession, *, user_id: uuid.UUID, year: Optional[int] = None) -> str:
    """
    Sequential INV-YYYY-NNN numbering used when a proforma becomes an invoice.
    """
    year = year or datetime.now(timezone.utc).year
    prefix = f"INV-{year}-"
    result = await db.execute(
        select(InvoiceModel.invoice_number).filter(
            InvoiceModel.user_id == user_id,
            InvoiceModel.type == InvoiceTypeEnum.INVOICE,
            InvoiceModel.invoice_number.like(f"{prefix}%"),
        )
    )
    last_number = 0
    for number in result.scalars().all():
        try:
            last_number = max(last_number, int(number[len(prefix):]))
        except ValueError:
            continue
    return f"{prefix}{last_number + 1:03d}"


def _build_items(items: List[InvoiceItemCreate]) -> List[InvoiceItemModel]:
    return [
        InvoiceItemModel(
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=calculate_item_total(item),
        )
        for item in items
    ]


async def get_invoice(db: AsyncSession, *, invoice_id: uuid.UUID, user_id: uuid.UUID) -> Optional[InvoiceModel]:
    """
    Get a single invoice by its ID for its owner. Items load eagerly.
    """
    result = await db.execute(
        select(InvoiceModel).filter(InvoiceModel.id == invoice_id, InvoiceModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_invoice_by_id(db: AsyncSession, *, invoice_id: uuid.UUID) -> Optional[InvoiceModel]:
    """
    Any user's invoice. Only for the payer-facing views, which check the
    invoice number or checkout id themselves.
    """
    result = await db.execute(select(InvoiceModel).filter(InvoiceModel.id == invoice_id))
    return result.scalars().first()


async def find_invoice_for_checkout(
    db: AsyncSession, *, user_id: uuid.UUID, checkout_id: Optional[str], client_reference: Optional[str]
) -> Optional[InvoiceModel]:
    """
    Locate the invoice a Wave checkout session pays for: by stored checkout id
    first, then by client reference holding the invoice id or number.
    """
    conditions = []
    if checkout_id:
        conditions.append(InvoiceModel.wave_checkout_id == checkout_id)
    if client_reference:
        conditions.append(InvoiceModel.invoice_number == client_reference)
        try:
            conditions.append(InvoiceModel.id == uuid.UUID(client_reference))
        except ValueError:
            pass
    if not conditions:
        return None
    result = await db.execute(
        select(InvoiceModel).filter(InvoiceModel.user_id == user_id, or_(*conditions))
    )
    return result.scalars().first()


async def get_invoices_by_user(
    db: AsyncSession, *, user_id: uuid.UUID, project_id: Optional[uuid.UUID] = None,
    status: Optional[InvoiceStatusEnum] = None, invoice_type: Optional[InvoiceTypeEnum] = None,
    skip: int = 0, limit: int = 100
) -> List[InvoiceModel]:
    query = (
        select(InvoiceModel)
        .filter(InvoiceModel.user_id == user_id)
        .order_by(InvoiceModel.created_at.desc())
    )
    if project_id: query = query.filter(InvoiceModel.project_id == project_id)
    if status: query = query.filter(InvoiceModel.status == status)
    if invoice_type: query = query.filter(InvoiceModel.type == invoice_type)
    query = query.offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_invoice_with_items(
    db: AsyncSession,
    *,
    invoice_in: InvoiceCreate,
    owner_id: uuid.UUID,
    client: Optional[ClientModel] = None,
    invoice_number: Optional[str] = None,
    status: InvoiceStatusEnum = InvoiceStatusEnum.PENDING,
    paid_date: Optional[datetime] = None,
) -> InvoiceModel:
    """
    Create an invoice and its line items. The client snapshot is taken from
    ``client`` for every field the payload leaves empty.
    """
    invoice_data = invoice_in.model_dump(exclude={"items"})
    if invoice_in.items:
        invoice_data["amount"] = calculate_invoice_amount(invoice_in.items)
    invoice_data["currency"] = invoice_data["currency"].upper()

    if client is not None:
        invoice_data["client_id"] = client.id
        invoice_data["client_name"] = invoice_data.get("client_name") or client.name
        invoice_data["client_email"] = invoice_data.get("client_email") or client.email
        invoice_data["client_address"] = invoice_data.get("client_address") or client.address
        invoice_data["client_phone"] = invoice_data.get("client_phone") or client.phone

    db_invoice = InvoiceModel(
        **invoice_data,
        invoice_number=invoice_number or generate_invoice_number(invoice_in.type),
        status=status,
        paid_date=paid_date,
        user_id=owner_id,
    )
    db_invoice.items = _build_items(invoice_in.items)

    db.add(db_invoice)
    await db.commit()
    await db.refresh(db_invoice)
    return db_invoice


async def update_invoice(db: AsyncSession, *, db_invoice: InvoiceModel, invoice_in: InvoiceUpdate) -> InvoiceModel:
    update_data = invoice_in.model_dump(exclude_unset=True, exclude={"items"})
    for required in ("amount", "status", "currency"):
        if required in update_data and update_data[required] is None:
            del update_data[required]
    if update_data.get("currency"):
        update_data["currency"] = update_data["currency"].upper()

    if "status" in update_data and update_data["status"] != db_invoice.status:
        if update_data["status"] == InvoiceStatusEnum.PAID and not db_invoice.paid_date:
            db_invoice.paid_date = datetime.now(timezone.utc)
        elif update_data["status"] != InvoiceStatusEnum.PAID:
            db_invoice.paid_date = None

    for field, value in update_data.items():
        setattr(db_invoice, field, value)

    if invoice_in.items is not None:
        # Items are replaced wholesale; delete-orphan removes the old rows
        db_invoice.items = _build_items(invoice_in.items)
        if invoice_in.items:
            db_invoice.amount = calculate_invoice_amount(invoice_in.items)

    db.add(db_invoice)
    await db.commit()
    await db.refresh(db_invoice)
    return db_invoice


async def mark_invoice_paid(
    db: AsyncSession, *, db_invoice: InvoiceModel, paid_date: Optional[datetime] = None,
    wave_checkout_id: Optional[str] = None,
) -> InvoiceModel:
    db_invoice.status = InvoiceStatusEnum.PAID
    db_invoice.paid_date = paid_date or datetime.now(timezone.utc)
    if wave_checkout_id:
        db_invoice.wave_checkout_id = wave_checkout_id
    db.add(db_invoice)
    await db.commit()
    await db.refresh(db_invoice)
    return db_invoice


async def set_payment_link(
    db: AsyncSession, *, db_invoice: InvoiceModel, payment_link: str, wave_checkout_id: str
) -> InvoiceModel:
    db_invoice.payment_link = payment_link
    db_invoice.wave_checkout_id = wave_checkout_id
    db.add(db_invoice)
    await db.commit()
    await db.refresh(db_invoice)
    return db_invoice


async def convert_proforma_to_invoice(
    db: AsyncSession, *, proforma: InvoiceModel, mark_as_paid: bool = False
) -> InvoiceModel:
    """
    Issue the final invoice for a proforma. The proforma is cancelled in the
    same transaction.
    """
    if proforma.project_id:
        existing = await db.execute(
            select(InvoiceModel.id).filter(
                InvoiceModel.project_id == proforma.project_id,
                InvoiceModel.type == InvoiceTypeEnum.INVOICE,
                InvoiceModel.status != InvoiceStatusEnum.CANCELLED,
            )
        )
        if existing.first():
            raise InvoiceAlreadyExistsError("An invoice already exists for this project.")

    number = await generate_final_invoice_number(db, user_id=proforma.user_id)
    now = datetime.now(timezone.utc)
    invoice = InvoiceModel(
        invoice_number=number,
        type=InvoiceTypeEnum.INVOICE,
        status=InvoiceStatusEnum.PAID if mark_as_paid else InvoiceStatusEnum.PENDING,
        amount=proforma.amount,
        currency=proforma.currency,
        due_date=proforma.due_date,
        paid_date=now if mark_as_paid else None,
        notes=proforma.notes,
        client_name=proforma.client_name,
        client_email=proforma.client_email,
        client_address=proforma.client_address,
        client_phone=proforma.client_phone,
        project_id=proforma.project_id,
        client_id=proforma.client_id,
        parent_proforma_id=proforma.id,
        user_id=proforma.user_id,
    )
    invoice.items = [
        InvoiceItemModel(
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=item.total,
        )
        for item in proforma.items
    ]
    proforma.status = InvoiceStatusEnum.CANCELLED

    db.add_all([invoice, proforma])
    await db.commit()
    await db.refresh(invoice)
    await db.refresh(proforma)
    return invoice


async def get_proforma_conversions(db: AsyncSession, *, proforma: InvoiceModel) -> List[InvoiceModel]:
    """Non-cancelled invoices issued from ``proforma``, oldest first."""
    result = await db.execute(
        select(InvoiceModel)
        .filter(
            InvoiceModel.parent_proforma_id == proforma.id,
            InvoiceModel.status != InvoiceStatusEnum.CANCELLED,
        )
        .order_by(InvoiceModel.created_at.asc())
    )
    return list(result.scalars().all())


def conversion_totals(proforma: InvoiceModel, conversions: List[InvoiceModel]) -> dict:
    total_invoiced = round(sum(float(invoice.amount or 0) for invoice in conversions), 2)
    amount = float(proforma.amount or 0)
    return {
        "proforma_id": proforma.id,
        "proforma_number": proforma.invoice_number,
        "amount": amount,
        "total_invoiced": total_invoiced,
        "remaining_amount": round(max(0.0, amount - total_invoiced), 2),
        "is_fully_converted": total_invoiced >= amount,
        "invoices": conversions,
    }


async def partially_convert_proforma(
    db: AsyncSession, *, proforma: InvoiceModel, convert_in: PartialConvertRequest,
    client: Optional[ClientModel] = None,
) -> InvoiceModel:
    """
    Issue an invoice for part of a proforma. Once the invoices issued from it
    cover its amount, the proforma is cancelled.
    """
    number = await generate_final_invoice_number(db, user_id=proforma.user_id)
    paid = convert_in.mark_as_paid
    invoice = InvoiceModel(
        invoice_number=number,
        type=InvoiceTypeEnum.INVOICE,
        status=InvoiceStatusEnum.PAID if paid else InvoiceStatusEnum.PENDING,
        amount=calculate_invoice_amount(convert_in.items),
        currency=proforma.currency,
        due_date=convert_in.due_date or proforma.due_date,
        paid_date=(convert_in.paid_date or datetime.now(timezone.utc)) if paid else None,
        notes=convert_in.notes if convert_in.notes is not None else proforma.notes,
        client_name=convert_in.client_name or (client.name if client else None) or proforma.client_name,
        client_email=convert_in.client_email or (client.email if client else None) or proforma.client_email,
        client_address=convert_in.client_address or (client.address if client else None) or proforma.client_address,
        client_phone=convert_in.client_phone or (client.phone if client else None) or proforma.client_phone,
        project_id=proforma.project_id,
        client_id=client.id if client else proforma.client_id,
        parent_proforma_id=proforma.id,
        user_id=proforma.user_id,
    )
    invoice.items = _build_items(convert_in.items)
    db.add(invoice)
    await db.flush()

    conversions = await get_proforma_conversions(db, proforma=proforma)
    if conversion_totals(proforma, conversions)["is_fully_converted"]:
        proforma.status = InvoiceStatusEnum.CANCELLED
        db.add(proforma)

    await db.commit()
    await db.refresh(invoice)
    await db.refresh(proforma)
    return invoice


async def delete_invoice(db: AsyncSession, *, db_invoice: InvoiceModel) -> InvoiceModel:
    await db.delete(db_invoice)
    await db.commit()
    return db_invoice

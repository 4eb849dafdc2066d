"""
Sales Service - order creation and lifecycle

A sale is created in one unit of work: number allocation, product
resolution, totals and the inserts of the sale and its lines either all
commit or none do.

Totals (exact Decimal arithmetic, cents rounded half-up per line):
    line.subtotal = unit_price * quantity - line_discount
    sale.subtotal = sum(line.subtotal)
    sale.total    = subtotal - discount + surcharge + shipping_value

Creating a sale does NOT move stock. Stock only changes through
stock_service.record_movement.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, LineItemInvalidError, NotFoundError, PermissionDeniedError, ValidationError
from ..models import Product, Sale, SaleLine, PAYMENT_METHODS, SALE_STATUSES, ROLE_SELLER
from ..models.sales import CENT
from ..time_utils import utcnow
from ..validation import MAX_MONEY
from .concurrency import lock_sale_numbering, transaction


ZERO = Decimal("0.00")


@dataclass(frozen=True)
class LineItemRequest:
    product_id: int
    quantity: Decimal
    unit_price: Decimal | None = None
    discount: Decimal = ZERO


@dataclass(frozen=True)
class SaleRequest:
    customer_id: int
    line_items: list[LineItemRequest]
    payment_method: str
    discount: Decimal = ZERO
    surcharge: Decimal = ZERO
    shipping_value: Decimal = ZERO
    notes: str | None = None
    delivery_address: str | None = None


@dataclass
class SaleFilters:
    seller_id: int | None = None
    customer_id: int | None = None
    status: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


@dataclass
class SalePage:
    sales: list[Sale]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


def compute_line_subtotal(unit_price: Decimal, quantity: Decimal, discount: Decimal = ZERO) -> Decimal:
    """unit_price * quantity - discount, rounded to cents (half-up)."""
    return (unit_price * quantity - discount).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_order_total(
    subtotal: Decimal,
    discount: Decimal = ZERO,
    surcharge: Decimal = ZERO,
    shipping_value: Decimal = ZERO,
) -> Decimal:
    return (subtotal - discount + surcharge + shipping_value).quantize(CENT, rounding=ROUND_HALF_UP)


def _check_amount(value: Decimal, field: str) -> Decimal:
    """Derived amounts must fit Numeric(12,2) just like the inputs they come from."""
    if abs(value) > MAX_MONEY:
        raise ValidationError(
            f"{field} exceeds the maximum amount {MAX_MONEY}",
            code="AMOUNT_OUT_OF_RANGE",
            details={"field": field, "limit": str(MAX_MONEY)},
        )
    return value


def _next_sale_number(session) -> int:
    current = session.query(func.coalesce(func.max(Sale.sequence_number), 0)).scalar()
    return int(current or 0) + 1


def _is_sequence_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "uq_sales_sequence_number" in message or "sales.sequence_number" in message


def _validate_request(request: SaleRequest) -> None:
    if not request.line_items:
        raise ValidationError("At least one item is required", details={"field": "itens"})
    if request.payment_method not in PAYMENT_METHODS.values():
        raise ValidationError("Invalid payment method", details={"field": "forma_pagamento"})
    for index, item in enumerate(request.line_items):
        if item.quantity <= 0:
            raise ValidationError(
                "Quantity must be greater than zero",
                details={"field": f"itens[{index}].quantidade"},
            )


def create_sale(session, request: SaleRequest, *, seller_id: int) -> Sale:
    """
    Create a sale with its lines in a single transaction.

    Raises:
        ValidationError: malformed request, a derived amount beyond
            MAX_MONEY, or an unknown customer (rolled back)
        LineItemInvalidError: a product is missing or inactive (rolled back)
        ConflictError: another transaction took the same sequence number
            (rolled back; safe to retry)
    """
    _validate_request(request)

    with transaction(session):
        lock_sale_numbering(session)
        sequence_number = _next_sale_number(session)

        subtotal = ZERO
        lines: list[SaleLine] = []
        for index, item in enumerate(request.line_items):
            product = session.query(Product).filter_by(id=item.product_id, is_active=True).first()
            if product is None:
                raise LineItemInvalidError(
                    f"Product {item.product_id} not found or inactive",
                    details={"produto_id": item.product_id},
                )

            unit_price = item.unit_price if item.unit_price is not None else Decimal(product.sale_price)
            line_subtotal = _check_amount(
                compute_line_subtotal(unit_price, item.quantity, item.discount),
                f"itens[{index}].subtotal",
            )
            subtotal = _check_amount(subtotal + line_subtotal, "subtotal")

            lines.append(
                SaleLine(
                    product_id=product.id,
                    product_name=product.name,
                    product_code=product.code,
                    unit_price=unit_price.quantize(CENT),
                    quantity=item.quantity,
                    line_discount=item.discount.quantize(CENT),
                    subtotal=line_subtotal,
                )
            )

        total = _check_amount(
            compute_order_total(subtotal, request.discount, request.surcharge, request.shipping_value),
            "valor_total",
        )

        sale = Sale(
            sequence_number=sequence_number,
            customer_id=request.customer_id,
            seller_id=seller_id,
            subtotal=subtotal,
            discount=request.discount.quantize(CENT),
            surcharge=request.surcharge.quantize(CENT),
            shipping_value=request.shipping_value.quantize(CENT),
            total=total,
            payment_method=request.payment_method,
            notes=request.notes,
            delivery_address=request.delivery_address,
            status="pending",
            lines=lines,
        )
        session.add(sale)

        try:
            session.flush()
        except IntegrityError as exc:
            if _is_sequence_conflict(exc):
                raise ConflictError(
                    "Sale number already taken by a concurrent sale, retry the request",
                    code="SALE_NUMBER_CONFLICT",
                    details={"numero_venda": sequence_number, "retryable": True},
                ) from exc
            raise

    return sale


def update_sale_status(session, sale_id: int, status: str) -> Sale:
    """
    Set a sale's status.

    Any status can follow any other; there is no enforced state machine.
    """
    if status not in SALE_STATUSES.values():
        raise ValidationError("Invalid status", details={"field": "status"})

    with transaction(session):
        sale = session.get(Sale, sale_id)
        if sale is None:
            raise NotFoundError("Sale not found", code="SALE_NOT_FOUND")
        sale.status = status
        sale.updated_at = utcnow()

    return sale


def get_sale(session, sale_id: int, *, viewer) -> Sale:
    """Sellers may only read their own sales."""
    sale = session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found", code="SALE_NOT_FOUND")
    if viewer.role == ROLE_SELLER and sale.seller_id != viewer.id:
        raise PermissionDeniedError("Access denied", code="ACCESS_DENIED")
    return sale


def list_sales(session, filters: SaleFilters, *, viewer, page: int = 1, limit: int = 20) -> SalePage:
    """
    Paginated sales, newest first.

    Sellers are always restricted to their own sales, whatever seller
    filter they pass.
    """
    query = session.query(Sale)

    seller_id = viewer.id if viewer.role == ROLE_SELLER else filters.seller_id
    if seller_id is not None:
        query = query.filter(Sale.seller_id == seller_id)
    if filters.customer_id is not None:
        query = query.filter(Sale.customer_id == filters.customer_id)
    if filters.status is not None:
        query = query.filter(Sale.status == filters.status)
    if filters.created_from is not None:
        query = query.filter(Sale.created_at >= filters.created_from)
    if filters.created_to is not None:
        query = query.filter(Sale.created_at <= filters.created_to)

    total = query.count()
    rows = (
        query.order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return SalePage(sales=rows, total=total, page=page, limit=limit)

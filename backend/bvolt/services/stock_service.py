# Overview: Service-layer operations for stock; the movement ledger and current-quantity rows.

"""
Stock Ledger Invariants (authoritative)

Model:
- Stock holds one mutable current_quantity row per product.
- StockMovement is append-only; quantity is a positive magnitude and the
  effect comes from movement_type:
    inbound    -> current + quantity
    outbound   -> current - quantity (rejected if the result is negative)
    adjustment -> quantity (absolute set)
- A product with no Stock row has no baseline: its first movement yields
  quantity for inbound and 0 for outbound/adjustment, and creates the row.

Business invariants:
- current_quantity never goes negative. A rejected outbound writes nothing.
- current_quantity equals replay_quantity() over the product's movements in
  (occurred_at, id) order. Enforced at write time, never recomputed on read.

Concurrency:
- The Stock row is read with SELECT ... FOR UPDATE inside the same
  transaction that writes the movement, so concurrent movements on one
  product serialize. A concurrent lazy-create collides on
  uq_stock_product and surfaces as ConflictError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..models import Product, Stock, StockMovement, MOVEMENT_TYPES
from ..time_utils import utcnow
from .concurrency import lock_for_update, transaction


INBOUND = "inbound"
OUTBOUND = "outbound"
ADJUSTMENT = "adjustment"


@dataclass
class MovementResult:
    movement: StockMovement
    new_quantity: int

    def to_dict(self) -> dict:
        data = self.movement.to_dict()
        return {
            "id": data["id"],
            "produto_id": data["produto_id"],
            "tipo": data["tipo"],
            "quantidade": data["quantidade"],
            "observacao": data["observacao"],
            "data_movimentacao": data["data_movimentacao"],
            "nova_quantidade": self.new_quantity,
        }


def apply_movement(current: int | None, movement_type: str, quantity: int) -> int:
    """
    New on-hand quantity after one movement.

    current=None means the product has no Stock row yet.
    Raises InsufficientStockError when an outbound would go below zero.
    """
    if current is None:
        return quantity if movement_type == INBOUND else 0

    if movement_type == INBOUND:
        return current + quantity
    if movement_type == OUTBOUND:
        new_quantity = current - quantity
        if new_quantity < 0:
            raise InsufficientStockError(
                "Insufficient stock quantity",
                details={"quantidade_atual": current, "quantidade_solicitada": quantity},
            )
        return new_quantity
    if movement_type == ADJUSTMENT:
        return quantity
    raise ValidationError(f"Unknown movement type: {movement_type}", details={"field": "tipo"})


def replay_quantity(movements: Iterable[tuple[str, int]]) -> int | None:
    """
    Replay (movement_type, quantity) pairs in order from an empty baseline.

    Returns None for an empty ledger (no Stock row would exist).
    """
    current: int | None = None
    for movement_type, quantity in movements:
        current = apply_movement(current, movement_type, quantity)
    return current


def _validate_movement(movement_type: str, quantity: int) -> None:
    if movement_type not in MOVEMENT_TYPES.values():
        raise ValidationError("Invalid movement type", details={"field": "tipo"})
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", details={"field": "quantidade"})


def record_movement(
    session,
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    note: str | None = None,
    actor_id: int | None = None,
) -> MovementResult:
    """
    Apply a stock movement and append it to the ledger in one transaction.

    Raises:
        ValidationError: bad type/quantity (nothing touched the database)
        NotFoundError (PRODUCT_NOT_FOUND): product does not exist
        InsufficientStockError: outbound exceeds on-hand; nothing written
    """
    _validate_movement(movement_type, quantity)

    with transaction(session):
        product = session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")

        stock = lock_for_update(session.query(Stock).filter_by(product_id=product_id)).first()
        now = utcnow()

        if stock is None:
            new_quantity = apply_movement(None, movement_type, quantity)
            stock = Stock(
                product_id=product_id,
                current_quantity=new_quantity,
                minimum_quantity=0,
                last_movement_at=now,
            )
            session.add(stock)
        else:
            new_quantity = apply_movement(stock.current_quantity, movement_type, quantity)
            stock.current_quantity = new_quantity
            stock.last_movement_at = now

        movement = StockMovement(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            note=note,
            user_id=actor_id,
            occurred_at=now,
        )
        session.add(movement)
        session.flush()

    return MovementResult(movement=movement, new_quantity=new_quantity)


def ledger_movements(session, product_id: int) -> list[StockMovement]:
    return (
        session.query(StockMovement)
        .filter_by(product_id=product_id)
        .order_by(StockMovement.occurred_at.asc(), StockMovement.id.asc())
        .all()
    )


def ledger_quantity(session, product_id: int) -> int | None:
    """Quantity implied by the stored ledger (None if the product never moved)."""
    return replay_quantity(
        (m.movement_type, m.quantity) for m in ledger_movements(session, product_id)
    )


def find_ledger_mismatches(session, product_id: int | None = None) -> list[dict]:
    """
    Compare every Stock row with its ledger replay.

    Used by the `flask stock verify` command.
    """
    query = session.query(Stock)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)

    mismatches = []
    for stock in query.order_by(Stock.product_id).all():
        expected = ledger_quantity(session, stock.product_id)
        if expected != stock.current_quantity:
            mismatches.append({
                "product_id": stock.product_id,
                "stored": stock.current_quantity,
                "ledger": expected,
            })
    return mismatches


def list_stock(session, *, search: str | None = None, page: int = 1, limit: int = 10) -> tuple[list[Stock], int]:
    """Stock rows joined with their product, most recently moved first."""
    query = session.query(Stock).join(Product, Stock.product_id == Product.id)
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))

    total = query.count()
    rows = (
        query.order_by(Stock.last_movement_at.desc(), Stock.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def list_movements(
    session, *, product_id: int | None = None, page: int = 1, limit: int = 10
) -> tuple[list[StockMovement], int]:
    """Ledger entries, newest first."""
    query = session.query(StockMovement)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)

    total = query.count()
    rows = (
        query.order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def list_low_stock(session) -> list[Stock]:
    """Rows at or below their reorder threshold, emptiest first."""
    return (
        session.query(Stock)
        .filter(Stock.current_quantity <= Stock.minimum_quantity)
        .order_by(Stock.current_quantity.asc(), Stock.id.asc())
        .all()
    )

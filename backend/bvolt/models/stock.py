from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


# Wire value -> internal value
MOVEMENT_TYPES = {
    "entrada": "inbound",
    "saida": "outbound",
    "ajuste": "adjustment",
}
MOVEMENT_TYPE_WIRE = {v: k for k, v in MOVEMENT_TYPES.items()}


class Stock(db.Model):
    """
    Current on-hand quantity for a product (one row per product).

    Mutated only by the stock ledger (services/stock_service.py), always
    together with a StockMovement row in the same transaction.
    """
    __tablename__ = "stock"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_stock_product"),
        db.CheckConstraint("current_quantity >= 0", name="ck_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    current_quantity = db.Column(db.Integer, nullable=False, default=0)
    # Reorder threshold, informational only
    minimum_quantity = db.Column(db.Integer, nullable=False, default=0)
    location = db.Column(db.String(64), nullable=True)

    last_movement_at = db.Column(db.DateTime, nullable=True)

    product = db.relationship("Product", back_populates="stock")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "produto_id": self.product_id,
            "produto_nome": self.product.name if self.product else None,
            "codigo": self.product.code if self.product else None,
            "quantidade_atual": self.current_quantity,
            "quantidade_minima": self.minimum_quantity,
            "localizacao": self.location,
            "ultima_movimentacao": to_utc_z(self.last_movement_at),
        }


class StockMovement(db.Model):
    """
    Append-only stock ledger entry.

    quantity is always a positive magnitude; its effect comes from
    movement_type (inbound adds, outbound subtracts, adjustment sets).
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_movements_positive_qty"),
        db.CheckConstraint(
            "movement_type IN ('inbound', 'outbound', 'adjustment')",
            name="ck_stock_movements_type",
        ),
        db.Index("ix_stock_movements_product_occurred", "product_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    movement_type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    note = db.Column(db.Text, nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    occurred_at = db.Column(db.DateTime, nullable=False)

    product = db.relationship("Product")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "produto_id": self.product_id,
            "produto_nome": self.product.name if self.product else None,
            "tipo": MOVEMENT_TYPE_WIRE.get(self.movement_type, self.movement_type),
            "quantidade": self.quantity,
            "observacao": self.note,
            "data_movimentacao": to_utc_z(self.occurred_at),
            "usuario_id": self.user_id,
            "usuario_nome": self.user.name if self.user else None,
        }

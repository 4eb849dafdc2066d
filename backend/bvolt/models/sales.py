from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")

# Wire value -> internal value
PAYMENT_METHODS = {
    "dinheiro": "cash",
    "cartao_debito": "debit_card",
    "cartao_credito": "credit_card",
    "pix": "instant_transfer",
    "transferencia": "bank_transfer",
}

SALE_STATUSES = {
    "pendente": "pending",
    "confirmada": "confirmed",
    "entregue": "delivered",
    "cancelada": "cancelled",
}

PAYMENT_METHOD_WIRE = {v: k for k, v in PAYMENT_METHODS.items()}
SALE_STATUS_WIRE = {v: k for k, v in SALE_STATUSES.items()}


def money(value) -> str | None:
    """Serialize an amount with exactly two decimal places."""
    if value is None:
        return None
    return str(Decimal(value).quantize(CENT))


def quantity_str(value) -> str | None:
    if value is None:
        return None
    return format(Decimal(value).quantize(QUANTITY_STEP).normalize(), "f")


class Sale(db.Model):
    """
    Sale (order) document.

    Totals are derived at creation time and stored:
        subtotal = sum(line.subtotal)
        total    = subtotal - discount + surcharge + shipping_value
    sequence_number is the human-facing order number, unique across sales.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("sequence_number", name="uq_sales_sequence_number"),
        db.Index("ix_sales_seller_created", "seller_id", "created_at"),
        db.Index("ix_sales_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sequence_number = db.Column(db.Integer, nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    surcharge = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    shipping_value = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    delivery_address = db.Column(db.Text, nullable=True)

    # pending -> confirmed -> delivered, or cancelled; transitions are not enforced
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Client")
    seller = db.relationship("User")
    lines = db.relationship(
        "SaleLine",
        back_populates="sale",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SaleLine.id",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} number={self.sequence_number} total={self.total}>"

    def to_dict(self, *, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "numero_venda": self.sequence_number,
            "cliente_id": self.customer_id,
            "vendedor_id": self.seller_id,
            "subtotal": money(self.subtotal),
            "desconto": money(self.discount),
            "acrescimo": money(self.surcharge),
            "valor_frete": money(self.shipping_value),
            "valor_total": money(self.total),
            "forma_pagamento": PAYMENT_METHOD_WIRE.get(self.payment_method, self.payment_method),
            "observacoes": self.notes,
            "endereco_entrega": self.delivery_address,
            "status": SALE_STATUS_WIRE.get(self.status, self.status),
            "data_venda": to_utc_z(self.created_at),
            "data_atualizacao": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["itens"] = [line.to_dict() for line in self.lines]
        return data


class SaleLine(db.Model):
    """
    Line item on a sale.

    product_name / product_code / unit_price are snapshots taken when the
    sale is created; later product edits never touch them.
    """
    __tablename__ = "sale_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(
        db.Integer,
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_code = db.Column(db.String(64), nullable=True)

    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    line_discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    sale = db.relationship("Sale", back_populates="lines")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "venda_id": self.sale_id,
            "produto_id": self.product_id,
            "nome_produto": self.product_name,
            "codigo_produto": self.product_code,
            "preco_unitario": money(self.unit_price),
            "quantidade": quantity_str(self.quantity),
            "desconto_item": money(self.line_discount),
            "subtotal": money(self.subtotal),
        }

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Client(db.Model):
    """Customer a sale is made to."""
    __tablename__ = "clients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    # CPF or CNPJ, digits only
    document = db.Column(db.String(18), nullable=True, unique=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nome": self.name,
            "documento": self.document,
            "email": self.email,
            "telefone": self.phone,
            "ativo": self.is_active,
            "data_cadastro": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    The sales workflow reads name, code, sale_price and is_active; stock
    levels live in Stock (1:1), never on the product row.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_products_code"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    sale_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    stock = db.relationship("Stock", back_populates="product", uselist=False)

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "codigo": self.code,
            "nome": self.name,
            "descricao": self.description,
            "preco_venda": str(self.sale_price) if self.sale_price is not None else None,
            "ativo": self.is_active,
            "data_cadastro": to_utc_z(self.created_at),
            "data_atualizacao": to_utc_z(self.updated_at),
        }

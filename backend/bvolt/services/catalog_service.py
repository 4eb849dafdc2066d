# Overview: Service-layer operations for catalog master data; products and clients.

from decimal import Decimal

from sqlalchemy import or_

from ..errors import ConflictError, ValidationError
from ..models import Client, Product
from .concurrency import transaction


def create_product(
    session,
    *,
    code: str,
    name: str,
    sale_price,
    description: str | None = None,
    is_active: bool = True,
) -> Product:
    """Create a product. Raises ConflictError (PRODUCT_CODE_IN_USE) for a duplicate code."""
    code = (code or "").strip()
    name = (name or "").strip()
    if not code or not name:
        raise ValidationError("Product code and name are required")

    price = Decimal(str(sale_price))
    if price < 0:
        raise ValidationError("Sale price must be >= 0", details={"field": "preco_venda"})

    if session.query(Product).filter_by(code=code).first():
        raise ConflictError("Product code already in use", code="PRODUCT_CODE_IN_USE")

    product = Product(
        code=code,
        name=name,
        description=description,
        sale_price=price,
        is_active=is_active,
    )
    with transaction(session):
        session.add(product)
    return product


def create_client(
    session,
    *,
    name: str,
    document: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> Client:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Client name is required")

    client = Client(name=name, document=document, email=email, phone=phone, is_active=True)
    with transaction(session):
        session.add(client)
    return client


def list_products(
    session, *, search: str | None = None, active: bool | None = None, page: int = 1, limit: int = 20
) -> tuple[list[Product], int]:
    """Products ordered by name; search matches name or code."""
    query = session.query(Product)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))
    if active is not None:
        query = query.filter(Product.is_active.is_(active))

    total = query.count()
    rows = query.order_by(Product.name.asc(), Product.id.asc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def list_clients(session, *, search: str | None = None, page: int = 1, limit: int = 10) -> tuple[list[Client], int]:
    query = session.query(Client)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(Client.name.ilike(pattern), Client.document.ilike(pattern), Client.email.ilike(pattern))
        )

    total = query.count()
    rows = query.order_by(Client.name.asc(), Client.id.asc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total

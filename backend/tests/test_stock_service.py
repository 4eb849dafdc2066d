"""
Stock ledger tests.

Verifies:
- Movement arithmetic for inbound, outbound and adjustment
- Rejected outbound movements write nothing
- A product's first movement creates its Stock row (lazy baseline)
- Replaying the ledger reproduces the stored quantity
"""

import pytest

from bvolt.errors import InsufficientStockError, NotFoundError, ValidationError
from bvolt.models import Stock, StockMovement
from bvolt.services import stock_service
from bvolt.services.stock_service import apply_movement, replay_quantity


def _move(session, product, movement_type, quantity, actor=None):
    return stock_service.record_movement(
        session,
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        actor_id=actor.id if actor else None,
    )


def _stored_quantity(session, product):
    return session.query(Stock).filter_by(product_id=product.id).one().current_quantity


# =============================================================================
# PURE ARITHMETIC
# =============================================================================


class TestApplyMovement:

    def test_inbound_adds(self):
        assert apply_movement(10, "inbound", 5) == 15

    def test_outbound_subtracts(self):
        assert apply_movement(10, "outbound", 4) == 6

    def test_outbound_to_zero_allowed(self):
        assert apply_movement(4, "outbound", 4) == 0

    def test_outbound_underflow_raises(self):
        with pytest.raises(InsufficientStockError):
            apply_movement(3, "outbound", 4)

    def test_adjustment_sets(self):
        assert apply_movement(10, "adjustment", 3) == 3

    @pytest.mark.parametrize(
        "movement_type,expected",
        [("inbound", 7), ("outbound", 0), ("adjustment", 0)],
    )
    def test_first_movement_without_baseline(self, movement_type, expected):
        assert apply_movement(None, movement_type, 7) == expected

    def test_replay_empty_ledger(self):
        assert replay_quantity([]) is None

    def test_replay_sequence(self):
        movements = [("inbound", 10), ("outbound", 4), ("adjustment", 20), ("outbound", 5)]
        assert replay_quantity(movements) == 15


# =============================================================================
# RECORD MOVEMENT
# =============================================================================


class TestRecordMovement:

    def test_outbound_scenario(self, db_session, manager_user, make_product):
        product = make_product()
        _move(db_session, product, "inbound", 10, manager_user)

        result = _move(db_session, product, "outbound", 4, manager_user)
        assert result.new_quantity == 6
        assert result.movement.movement_type == "outbound"
        assert result.movement.quantity == 4
        assert _stored_quantity(db_session, product) == 6

        with pytest.raises(InsufficientStockError) as exc_info:
            _move(db_session, product, "outbound", 10, manager_user)

        assert exc_info.value.details == {"quantidade_atual": 6, "quantidade_solicitada": 10}
        assert _stored_quantity(db_session, product) == 6
        assert db_session.query(StockMovement).filter_by(product_id=product.id).count() == 2

    def test_first_adjustment_yields_zero(self, db_session, make_product):
        product = make_product()

        result = _move(db_session, product, "adjustment", 15)

        assert result.new_quantity == 0
        assert _stored_quantity(db_session, product) == 0
        assert db_session.query(StockMovement).filter_by(product_id=product.id).count() == 1

    def test_first_inbound_creates_row(self, db_session, make_product):
        product = make_product()
        assert db_session.query(Stock).filter_by(product_id=product.id).count() == 0

        result = _move(db_session, product, "inbound", 8)

        assert result.new_quantity == 8
        stock = db_session.query(Stock).filter_by(product_id=product.id).one()
        assert stock.current_quantity == 8
        assert stock.last_movement_at is not None

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            stock_service.record_movement(
                db_session, product_id=987654, movement_type="inbound", quantity=1
            )
        assert exc_info.value.code == "PRODUCT_NOT_FOUND"
        assert db_session.query(StockMovement).count() == 0

    @pytest.mark.parametrize("quantity", [0, -1, True])
    def test_non_positive_quantity_rejected(self, db_session, make_product, quantity):
        product = make_product()
        with pytest.raises(ValidationError):
            _move(db_session, product, "inbound", quantity)

    def test_wire_type_rejected_by_service(self, db_session, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            _move(db_session, product, "entrada", 1)


# =============================================================================
# LEDGER REPLAY
# =============================================================================


class TestLedgerReplay:

    def test_replay_matches_stored_quantity(self, db_session, make_product):
        product = make_product()
        for movement_type, quantity in [
            ("outbound", 3),
            ("inbound", 12),
            ("outbound", 5),
            ("adjustment", 30),
            ("outbound", 1),
        ]:
            _move(db_session, product, movement_type, quantity)

        assert stock_service.ledger_quantity(db_session, product.id) == 29
        assert _stored_quantity(db_session, product) == 29
        assert stock_service.find_ledger_mismatches(db_session) == []

    def test_mismatch_detected(self, db_session, make_product):
        product = make_product()
        _move(db_session, product, "inbound", 5)

        stock = db_session.query(Stock).filter_by(product_id=product.id).one()
        stock.current_quantity = 99
        db_session.commit()

        assert stock_service.find_ledger_mismatches(db_session) == [
            {"product_id": product.id, "stored": 99, "ledger": 5}
        ]

    def test_low_stock(self, db_session, make_product):
        low = make_product("LOW")
        ok = make_product("OK")
        _move(db_session, low, "inbound", 2)
        _move(db_session, ok, "inbound", 50)

        for stock in db_session.query(Stock).all():
            stock.minimum_quantity = 5
        db_session.commit()

        rows = stock_service.list_low_stock(db_session)
        assert [row.product_id for row in rows] == [low.id]

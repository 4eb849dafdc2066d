"""
Payload validation tests: coercers and PayloadPolicy enforcement.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from bvolt.errors import ValidationError
from bvolt.models import PAYMENT_METHODS
from bvolt.validation import (
    PayloadPolicy,
    coerce_decimal,
    coerce_flag,
    coerce_iso_datetime,
    coerce_int,
    coerce_money,
    coerce_positive_int,
    coerce_quantity,
    one_of,
    string_of,
    validate_payload,
)


class TestCoercers:

    def test_int_accepts_numeric_string(self):
        assert coerce_int("n", " 42 ") == 42

    @pytest.mark.parametrize("value", [True, 1.5, "1.0", "1e3", "", "abc", None])
    def test_int_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_int("n", value)

    def test_positive_int_rejects_zero(self):
        with pytest.raises(ValidationError):
            coerce_positive_int("n", 0)

    def test_decimal_from_float_is_exact(self):
        assert coerce_decimal("v", 0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", False, [], "ten"])
    def test_decimal_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_decimal("v", value)

    def test_money(self):
        assert coerce_money("v", "12.50") == Decimal("12.50")

    @pytest.mark.parametrize("value", ["-0.01", "1.001", "10000000000.00"])
    def test_money_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_money("v", value)

    def test_quantity_allows_fractions(self):
        assert coerce_quantity("q", "1.125") == Decimal("1.125")

    @pytest.mark.parametrize("value", [0, "-1", "0.0001"])
    def test_quantity_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_quantity("q", value)

    def test_string_strips_and_limits(self):
        assert string_of(5)("s", "  abc ") == "abc"
        with pytest.raises(ValidationError):
            string_of(2)("s", "abc")

    @pytest.mark.parametrize("value,expected", [("true", True), ("0", False), (" FALSE ", False), (True, True)])
    def test_flag(self, value, expected):
        assert coerce_flag("ativo", value) is expected

    def test_flag_rejects(self):
        with pytest.raises(ValidationError):
            coerce_flag("ativo", "sim")

    def test_iso_datetime_offset_becomes_naive_utc(self):
        assert coerce_iso_datetime("d", "2026-10-18T09:30:00-03:00") == datetime(2026, 10, 18, 12, 30)
        assert coerce_iso_datetime("d", "2026-10-18T12:30:00Z") == datetime(2026, 10, 18, 12, 30)

    def test_iso_datetime_without_offset_is_utc(self):
        assert coerce_iso_datetime("d", "2026-10-18") == datetime(2026, 10, 18)

    @pytest.mark.parametrize("value", ["18/10/2026", 20261018])
    def test_iso_datetime_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_iso_datetime("d", value)

    def test_one_of_maps_wire_value(self):
        assert one_of(PAYMENT_METHODS)("forma_pagamento", "pix") == "instant_transfer"

    def test_one_of_rejects_internal_value(self):
        with pytest.raises(ValidationError) as exc_info:
            one_of(PAYMENT_METHODS)("forma_pagamento", "cash")
        assert "dinheiro" in exc_info.value.details["allowed"]


class TestPayloadPolicy:

    POLICY = PayloadPolicy(
        fields={"a": coerce_int, "b": string_of(10)},
        required={"a"},
    )

    def test_cleans_present_fields(self):
        assert validate_payload({"a": "3", "b": " x "}, self.POLICY) == {"a": 3, "b": "x"}

    def test_missing_required(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload({"b": "x"}, self.POLICY)
        assert exc_info.value.details == {"fields": ["a"]}

    def test_null_required_counts_as_missing(self):
        with pytest.raises(ValidationError):
            validate_payload({"a": None}, self.POLICY)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload({"a": 1, "c": 2}, self.POLICY)
        assert exc_info.value.details == {"field": "c"}

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            validate_payload([1, 2], self.POLICY)

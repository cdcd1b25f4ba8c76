"""
Unit tests for payload validation.

Tests cover:
- Full user schema (required fields, strict types, username rules)
- Partial update schema (optional fields, explicit nulls, shallow nesting)
- Order schema
- First-violation message format
- Unknown keys being ignored
"""

import pytest

from api.src.models.user import INT64_MAX, INT64_MIN, MAX_PRICE
from api.src.validation import (
    ValidationResult,
    validate_order,
    validate_user,
    validate_user_update,
)


# ============================================================================
# USER SCHEMA
# ============================================================================


class TestValidateUser:
    """Tests for the full user schema."""

    def test_accepts_valid_user(self, user_payload):
        result = validate_user(user_payload)

        assert result.ok
        assert result.message is None
        assert result.value.to_document() == user_payload

    def test_missing_field_reports_first_violation(self, user_payload):
        del user_payload["email"]

        result = validate_user(user_payload)

        assert not result.ok
        assert result.value is None
        assert result.message == "email: Field required"

    @pytest.mark.parametrize("username", ["ann", "1Ann", "_Ann", "Éva"])
    def test_username_must_start_with_capital_letter(self, user_payload, username):
        user_payload["username"] = username

        result = validate_user(user_payload)

        assert not result.ok
        assert result.message == "username: Username must start with a capital letter"

    def test_username_length_bounds(self, user_payload):
        user_payload["username"] = ""
        assert not validate_user(user_payload).ok

        user_payload["username"] = "A" * 20
        assert validate_user(user_payload).ok

        user_payload["username"] = "A" * 21
        result = validate_user(user_payload)
        assert not result.ok
        assert result.message.startswith("username:")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("userId", "1"),
            ("userId", 1.5),
            ("age", "20"),
            ("age", True),
            ("isActive", 1),
            ("isActive", "true"),
            ("email", 42),
            ("hobbies", "chess"),
        ],
    )
    def test_rejects_mistyped_fields(self, user_payload, field, value):
        user_payload[field] = value

        result = validate_user(user_payload)

        assert not result.ok
        assert result.message.startswith(f"{field}")

    def test_nested_field_location_is_dotted(self, user_payload):
        user_payload["fullName"] = {"firstName": "A"}

        result = validate_user(user_payload)

        assert result.message == "fullName.lastName: Field required"

    def test_hobby_items_must_be_strings(self, user_payload):
        user_payload["hobbies"] = ["chess", 3]

        result = validate_user(user_payload)

        assert result.message.startswith("hobbies.1:")

    def test_unknown_keys_are_dropped(self, user_payload):
        user_payload["orders"] = [{"productName": "Pen", "price": 1, "quantity": 1}]
        user_payload["role"] = "admin"

        result = validate_user(user_payload)

        assert result.ok
        document = result.value.to_document()
        assert "orders" not in document
        assert "role" not in document

    @pytest.mark.parametrize("field", ["userId", "age"])
    def test_integers_are_bounded_to_64_bits(self, user_payload, field):
        user_payload[field] = INT64_MAX
        assert validate_user(user_payload).ok

        user_payload[field] = INT64_MAX + 1
        result = validate_user(user_payload)
        assert not result.ok
        assert result.message.startswith(f"{field}: Input should be less than or equal to")

        user_payload[field] = 2 ** 70
        assert not validate_user(user_payload).ok

        user_payload[field] = INT64_MIN - 1
        assert not validate_user(user_payload).ok

    @pytest.mark.parametrize("payload", [None, [], "user", 3])
    def test_rejects_non_object_body(self, payload):
        result = validate_user(payload)

        assert not result.ok
        assert result.message == "Request body must be a JSON object"


# ============================================================================
# PARTIAL UPDATE SCHEMA
# ============================================================================


class TestValidateUserUpdate:
    """Tests for the partial update schema."""

    def test_empty_body_is_valid(self):
        result = validate_user_update({})

        assert result.ok
        assert result.value.changes() == {}

    def test_changes_contain_only_present_fields(self):
        result = validate_user_update({"age": 31, "hobbies": []})

        assert result.ok
        assert result.value.changes() == {"age": 31, "hobbies": []}

    def test_nested_objects_keep_camel_case(self):
        result = validate_user_update({"fullName": {"firstName": "X", "lastName": "Y"}})

        assert result.value.changes() == {"fullName": {"firstName": "X", "lastName": "Y"}}

    def test_nested_objects_are_replaced_whole(self):
        result = validate_user_update({"address": {"city": "Paris"}})

        assert not result.ok
        assert result.message == "address.street: Field required"

    def test_explicit_null_is_rejected(self):
        result = validate_user_update({"age": None})

        assert not result.ok
        assert result.message == "age: Field may not be null"

    def test_present_fields_are_still_checked(self):
        assert not validate_user_update({"username": "lower"}).ok
        assert not validate_user_update({"isActive": "yes"}).ok
        assert validate_user_update({"username": "Upper"}).ok

    def test_user_id_is_bounded_to_64_bits(self):
        result = validate_user_update({"userId": 2 ** 70})

        assert not result.ok
        assert result.message.startswith("userId:")

    def test_password_is_kept_for_hashing(self):
        result = validate_user_update({"password": "new-secret"})

        assert result.value.changes() == {"password": "new-secret"}


# ============================================================================
# ORDER SCHEMA
# ============================================================================


class TestValidateOrder:
    """Tests for the order schema."""

    def test_accepts_integer_and_float_prices(self):
        assert validate_order({"productName": "Pen", "price": 2, "quantity": 3}).ok
        assert validate_order({"productName": "Pen", "price": 2.5, "quantity": 3}).ok

    def test_normalized_order_document(self):
        result = validate_order({"productName": "Pen", "price": 2, "quantity": 3, "note": "x"})

        assert result.value.to_document() == {"productName": "Pen", "price": 2.0, "quantity": 3}

    @pytest.mark.parametrize("missing", ["productName", "price", "quantity"])
    def test_every_field_is_required(self, missing):
        order = {"productName": "Pen", "price": 2, "quantity": 3}
        del order[missing]

        result = validate_order(order)

        assert not result.ok
        assert result.message == f"{missing}: Field required"

    @pytest.mark.parametrize("price", ["2", True, None, [2]])
    def test_price_must_be_a_number(self, price):
        result = validate_order({"productName": "Pen", "price": price, "quantity": 3})

        assert not result.ok
        assert result.message == "price: Input should be a valid number"

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf")])
    def test_price_must_be_finite(self, price):
        result = validate_order({"productName": "Pen", "price": price, "quantity": 3})

        assert not result.ok
        assert result.message == "price: Input should be a finite number"

    @pytest.mark.parametrize("price", [1e308, -1e308, MAX_PRICE * 10])
    def test_price_magnitude_is_bounded(self, price):
        result = validate_order({"productName": "Pen", "price": price, "quantity": 3})

        assert not result.ok
        assert result.message.startswith("price:")

    def test_largest_order_is_accepted(self):
        assert validate_order({"productName": "Pen", "price": MAX_PRICE, "quantity": INT64_MAX}).ok

    @pytest.mark.parametrize("quantity", ["3", 1.5, False, INT64_MAX + 1])
    def test_quantity_must_be_an_integer(self, quantity):
        result = validate_order({"productName": "Pen", "price": 2, "quantity": quantity})

        assert not result.ok
        assert result.message.startswith("quantity:")


def test_validation_result_constructors():
    assert ValidationResult.failure("bad") == ValidationResult(ok=False, message="bad")
    assert ValidationResult.success("v").ok

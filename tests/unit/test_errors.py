"""Unit tests for ledger error conventions."""

from exoskeleton.core.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorResponse,
    InvalidOperation,
    LedgerError,
    TransferFailed,
    category_for,
    invalid,
    not_found,
)


class TestErrorEnums:
    """Tests for ErrorCategory and ErrorCode enums."""

    def test_error_category_values(self) -> None:
        assert ErrorCategory.VALIDATION.value == "validation"
        assert ErrorCategory.PERMISSION.value == "permission"
        assert ErrorCategory.RESOURCE.value == "resource"
        assert ErrorCategory.TRANSFER.value == "transfer"
        assert ErrorCategory.SYSTEM.value == "system"

    def test_categories_by_code(self) -> None:
        assert category_for(ErrorCode.NAME_TOO_LONG) == ErrorCategory.VALIDATION
        assert category_for(ErrorCode.NOT_OWNER) == ErrorCategory.PERMISSION
        assert category_for(ErrorCode.NAME_TAKEN) == ErrorCategory.RESOURCE
        assert category_for(ErrorCode.TRANSFER_REFUSED) == ErrorCategory.TRANSFER
        assert category_for(ErrorCode.INTERNAL_ERROR) == ErrorCategory.SYSTEM


class TestErrorResponse:
    """Tests for ErrorResponse dataclass."""

    def test_error_to_dict(self) -> None:
        result = ErrorResponse(error="bad", code="c", category="validation").to_dict()
        assert result == {
            "success": False,
            "error": "bad",
            "code": "c",
            "category": "validation",
            "retriable": False,
        }

    def test_error_to_dict_with_details(self) -> None:
        result = ErrorResponse(error="bad", details={"max_length": 32}).to_dict()
        assert result["details"] == {"max_length": 32}


class TestExceptions:
    """Tests for the exception types and factories."""

    def test_invalid_factory(self) -> None:
        exc = invalid("too long", ErrorCode.NAME_TOO_LONG, max_length=32)
        assert isinstance(exc, InvalidOperation)
        assert isinstance(exc, LedgerError)
        assert exc.code == ErrorCode.NAME_TOO_LONG
        assert exc.details == {"max_length": 32}
        assert str(exc) == "too long"

    def test_invalid_defaults_to_invalid_argument(self) -> None:
        assert invalid("nope").code == ErrorCode.INVALID_ARGUMENT

    def test_not_found(self) -> None:
        exc = not_found("Identity", 42)
        assert exc.code == ErrorCode.NOT_FOUND
        assert exc.category == ErrorCategory.RESOURCE
        assert exc.details == {"key": "42"}

    def test_to_response(self) -> None:
        response = invalid("taken", ErrorCode.NAME_TAKEN, holder=1).to_response().to_dict()
        assert response["code"] == "name_taken"
        assert response["category"] == "resource"
        assert response["details"] == {"holder": 1}

    def test_transfer_failed(self) -> None:
        exc = TransferFailed("0xtreasury", 10, "refused")
        assert exc.code == ErrorCode.TRANSFER_REFUSED
        assert exc.recipient == "0xtreasury"
        assert exc.amount == 10
        assert "refused" in str(exc)

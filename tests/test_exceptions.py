"""Tests for the error envelope."""

from fastapi import HTTPException

from packages.shared.exceptions import (
    AccessDeniedError,
    BadParameterError,
    ConflictError,
    NotFoundError,
    UnsupportedOperatorError,
    error_to_http_view,
    validation_errors_to_http_view,
)


class TestErrorToHttpView:
    """Tests for error_to_http_view."""

    def test_not_found(self) -> None:
        code, view = error_to_http_view(NotFoundError("Run", 42, key="number"))

        assert code == 404
        assert view == {
            "errors": [
                {
                    "status": "404",
                    "title": "Not found",
                    "detail": "Run with this number (42) could not be found",
                }
            ]
        }

    def test_not_found_without_identifier(self) -> None:
        _, view = error_to_http_view(NotFoundError("Run"))

        assert view["errors"][0]["detail"] == "Run not found"

    def test_application_errors_keep_their_status(self) -> None:
        assert error_to_http_view(BadParameterError("nope"))[0] == 400
        assert error_to_http_view(ConflictError("nope"))[0] == 409
        assert error_to_http_view(AccessDeniedError())[0] == 403

    def test_unsupported_operator_is_a_bad_parameter(self) -> None:
        error = UnsupportedOperatorError("xor", ("and", "or"))

        code, view = error_to_http_view(error)

        assert isinstance(error, ValueError)
        assert code == 400
        assert view["errors"][0]["detail"] == "Unsupported filter operator: xor (expected one of and, or)"

    def test_http_exception(self) -> None:
        code, view = error_to_http_view(HTTPException(status_code=405, detail="Method Not Allowed"))

        assert code == 405
        assert view == {"errors": [{"status": "405", "title": "Method Not Allowed"}]}

    def test_unclassified_error(self) -> None:
        code, view = error_to_http_view(RuntimeError("boom"))

        assert code == 400
        assert view["errors"][0]["title"] == "Service unavailable"
        assert view["errors"][0]["detail"] == "boom"


class TestValidationErrorsToHttpView:
    """Tests for validation_errors_to_http_view."""

    def test_pointer_is_built_from_location(self) -> None:
        view = validation_errors_to_http_view(
            [{"loc": ("body", "flags", 0, "from"), "msg": "Input should be a valid integer"}]
        )

        assert view == {
            "errors": [
                {
                    "status": "400",
                    "title": "Invalid Attribute",
                    "detail": "Input should be a valid integer",
                    "source": {"pointer": "/body/flags/0/from"},
                }
            ]
        }

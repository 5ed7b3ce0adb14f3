"""Unit tests for error classification and the failure envelope."""

import unittest

from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrack.core.errors import (
    AuthenticationError,
    DatabaseError,
    DuplicateResourceError,
    InternalError,
    NotFoundError,
    ValidationError,
    classify_exception,
    error_from_integrity,
    to_error_response,
)


def _integrity(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, Exception(message))


class TestIntegrityMapping(unittest.TestCase):
    def test_unique_violation_is_duplicate(self) -> None:
        for msg in (
            "UNIQUE constraint failed: users.email",
            'duplicate key value violates unique constraint "ix_users_email"',
        ):
            with self.subTest(msg=msg):
                error = error_from_integrity(_integrity(msg))
                self.assertIsInstance(error, DuplicateResourceError)
                self.assertEqual(error.status_code, 409)

    def test_foreign_key_violation_is_not_found(self) -> None:
        error = error_from_integrity(_integrity("FOREIGN KEY constraint failed"))
        self.assertIsInstance(error, NotFoundError)

    def test_not_null_violation_is_validation(self) -> None:
        error = error_from_integrity(_integrity("NOT NULL constraint failed: tasks.title"))
        self.assertIsInstance(error, ValidationError)
        self.assertEqual(error.status_code, 422)

    def test_other_constraint_is_400_database_error(self) -> None:
        error = error_from_integrity(_integrity("CHECK constraint failed"))
        self.assertIsInstance(error, DatabaseError)
        self.assertEqual(error.status_code, 400)


class TestClassifyException(unittest.TestCase):
    def test_app_error_passes_through(self) -> None:
        exc = NotFoundError.for_resource("Task")
        self.assertIs(classify_exception(exc), exc)
        self.assertEqual(exc.message, "Task not found")

    def test_connection_failure_is_503(self) -> None:
        error = classify_exception(OperationalError("SELECT 1", {}, Exception("connection refused")))
        self.assertEqual(error.status_code, 503)
        self.assertEqual(error.error_code, "DATABASE_ERROR")

    def test_other_sqlalchemy_error_is_500(self) -> None:
        error = classify_exception(ProgrammingError("SELECT", {}, Exception("syntax")))
        self.assertEqual(error.status_code, 500)
        self.assertIsInstance(error, DatabaseError)

    def test_http_exception_keeps_status(self) -> None:
        error = classify_exception(StarletteHTTPException(status_code=405, detail="Method Not Allowed"))
        self.assertEqual(error.status_code, 405)
        self.assertEqual(error.message, "Method Not Allowed")

    def test_message_heuristics_for_untyped_errors(self) -> None:
        self.assertIsInstance(classify_exception(RuntimeError("thing not found")), NotFoundError)
        self.assertIsInstance(classify_exception(RuntimeError("Unauthorized access")), AuthenticationError)
        self.assertIsInstance(classify_exception(RuntimeError("boom")), InternalError)


class TestErrorEnvelope(unittest.TestCase):
    def test_typed_error_envelope(self) -> None:
        response = to_error_response(
            ValidationError(details=[{"field": "title", "message": "Task title is required"}]),
            expose_internals=False,
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(
            response.body,
            {
                "success": False,
                "message": "Validation failed",
                "error": "VALIDATION_ERROR",
                "details": [{"field": "title", "message": "Task title is required"}],
            },
        )

    def test_headers_are_carried(self) -> None:
        response = to_error_response(
            AuthenticationError("Invalid or expired access token", headers={"WWW-Authenticate": "Bearer"}),
            expose_internals=False,
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers, {"WWW-Authenticate": "Bearer"})

    def test_unexpected_error_is_generic_in_production(self) -> None:
        response = to_error_response(RuntimeError("secret internals"), expose_internals=False)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.body["message"], "Internal server error")
        self.assertEqual(response.body["error"], "INTERNAL_ERROR")
        self.assertNotIn("stack", response.body)

    def test_message_text_is_not_classified_in_production(self) -> None:
        exc = RuntimeError("key file /srv/app/keys/jwt.pem not found")
        with self.assertLogs("tasktrack.core.errors", level="ERROR") as logs:
            response = to_error_response(exc, expose_internals=False)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.body["message"], "Internal server error")
        self.assertNotIn("jwt.pem", str(response.body))
        self.assertIn("jwt.pem", "\n".join(logs.output))

    def test_message_text_is_classified_outside_production(self) -> None:
        with self.assertLogs("tasktrack.core.errors", level="ERROR"):
            response = to_error_response(RuntimeError("widget not found"), expose_internals=True)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.body["error"], "NOT_FOUND")

    def test_unexpected_error_exposes_stack_outside_production(self) -> None:
        response = to_error_response(RuntimeError("secret internals"), expose_internals=True)
        self.assertEqual(response.body["message"], "secret internals")
        self.assertIn("RuntimeError", response.body["stack"])

    def test_database_details_only_outside_production(self) -> None:
        exc = _integrity("CHECK constraint failed: priority")
        hidden = to_error_response(exc, expose_internals=False)
        shown = to_error_response(exc, expose_internals=True)
        self.assertNotIn("details", hidden.body)
        self.assertIn("CHECK constraint failed", shown.body["details"])


if __name__ == "__main__":
    unittest.main()

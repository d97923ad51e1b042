"""Workflow error taxonomy, mapped to HTTP responses in repairshop.main."""

from __future__ import annotations


class RepairShopError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: list | dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthenticated(RepairShopError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(RepairShopError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(RepairShopError):
    status_code = 404
    default_message = "Not found"


class ValidationFailed(RepairShopError):
    status_code = 400
    default_message = "Validation error"


class NoOpSameStatus(RepairShopError):
    status_code = 400
    default_message = "Job already has this status"


class Expired(RepairShopError):
    status_code = 400
    default_message = "Quote has expired"


class ConflictAlreadyResponded(RepairShopError):
    status_code = 400

    def __init__(self, prior_response: str):
        self.prior_response = prior_response
        super().__init__(f"Quote has already been {prior_response.lower()}")


class ConflictAlreadyConverted(RepairShopError):
    status_code = 400
    default_message = "Quote has already been converted to an invoice"


class ConflictDuplicateInvoice(RepairShopError):
    status_code = 400
    default_message = "Job already has an invoice"


class InvalidQuoteState(RepairShopError):
    status_code = 400
    default_message = "Only accepted quotes can be converted to invoices"


class PaymentRejected(RepairShopError):
    status_code = 400
    default_message = "Payment rejected"


class Internal(RepairShopError):
    status_code = 500


class JobHasInvoice(RepairShopError):
    status_code = 400
    default_message = "Cannot delete a job that has an invoice"


class DeliveryFailed(RepairShopError):
    status_code = 500
    default_message = "Failed to send email"

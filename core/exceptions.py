"""Typed exceptions for invoice and business profile operations."""


class InvoiceValidationError(ValueError):
    """
    Invoice failed validation on a strict create/update.

    Carries every message the validator produced so the API can return
    them all at once.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invoice is invalid: {'; '.join(errors)}")


class InvoiceNumberConflictError(ValueError):
    """Invoice number is already issued."""

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number {invoice_number} already exists")


class BusinessProfileExistsError(ValueError):
    """Owner already has a business profile."""

    def __init__(self):
        super().__init__("Business profile already exists for this account")

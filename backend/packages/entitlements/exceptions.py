"""Ledger errors. All derive from the application exception hierarchy."""

from common.core.exceptions import AppException, ValidationError


class MissingOrganizationError(ValidationError):
    """An organization-kind invoice was saved without an organization."""

    def __init__(self, invoice_id=None):
        self.invoice_id = invoice_id
        target = f"Invoice #{invoice_id}" if invoice_id else "New invoice"
        super().__init__(
            f"{target} belongs to an organization subscription but has no organization"
        )


class DuplicateNameError(ValidationError):
    """A feature with this name already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Feature name '{name}' is already taken")


class FeatureLockedError(AppException):
    """The feature is sold on an active invoice and its terms cannot change."""

    def __init__(self, feature_id: int, fields: list[str]):
        self.feature_id = feature_id
        self.fields = fields
        super().__init__(
            f"Feature {feature_id} is locked; cannot change {', '.join(fields)}"
        )


class InvalidAmountError(ValidationError):
    """Payment amounts must be positive minor-unit integers."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Payment amount must be positive, got {amount}")

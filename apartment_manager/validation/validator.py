"""
Form Input Validation

Checks the shell's form submissions before anything touches storage:
- apartment ID present on save
- username and password present on save
- something selected before a delete

IMPORTANT: Validation never fixes input. The "Vacant" placeholder is
a storage rule applied by the reconciler, not a validation fix.
"""

from apartment_manager.models.validation import ValidationIssue, ValidationResult


class InputValidationError(ValueError):
    """
    Raised when a form submission fails validation.

    Carries the full ValidationResult so the shell can show every issue.
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.first_error_message() or "invalid input")


class InputValidator:
    """
    Validates form input for apartments and users.

    Every check returns a ValidationResult; `require()` turns a failing
    result into an InputValidationError.
    """

    def validate_apartment(self, unit_id: str) -> ValidationResult:
        """Apartment save: only the ID is mandatory."""
        issues = []

        if not unit_id:
            issues.append(ValidationIssue(
                field="unit_id",
                issue_type="missing",
                message="apartment ID is required",
                suggested_fix="Enter the apartment ID before saving",
            ))

        return ValidationResult(entity_type="apartment", issues=issues)

    def validate_user(self, username: str, password: str) -> ValidationResult:
        """User save: both username and password are mandatory."""
        issues = []

        if not username or not password:
            issues.append(ValidationIssue(
                field="username" if not username else "password",
                issue_type="missing",
                message="username and password are required",
            ))

        return ValidationResult(entity_type="user", issues=issues)

    def validate_apartment_selection(self, unit_id: str) -> ValidationResult:
        issues = []
        if not unit_id:
            issues.append(ValidationIssue(
                field="unit_id",
                issue_type="not_selected",
                message="select an apartment first",
            ))
        return ValidationResult(entity_type="apartment", issues=issues)

    def validate_user_selection(self, user_id: int) -> ValidationResult:
        issues = []
        if user_id == 0:
            issues.append(ValidationIssue(
                field="id",
                issue_type="not_selected",
                message="select a user first",
            ))
        return ValidationResult(entity_type="user", issues=issues)

    @staticmethod
    def require(result: ValidationResult) -> None:
        """Raise InputValidationError if the result has errors."""
        if result.has_errors:
            raise InputValidationError(result)

"""Domain errors raised by the compliance services.

Routes translate these into HTTP responses; the scoring functions
themselves never raise.
"""


class ComplianceError(Exception):
    """Base class for all compliance service errors."""


class CustomerNotFoundError(ComplianceError):
    def __init__(self, customer_id: str) -> None:
        super().__init__(f"Customer not found: {customer_id}")
        self.customer_id = customer_id


class InvestigationNotFoundError(ComplianceError):
    def __init__(self, investigation_id: str) -> None:
        super().__init__(f"Investigation not found: {investigation_id}")
        self.investigation_id = investigation_id


class InvalidInvestigationActionError(ComplianceError):
    """The requested EDD action is malformed or not applicable."""


class ManagementApprovalRequiredError(ComplianceError):
    """High-risk EDD outcomes need management sign-off first."""


class TransactionNotFoundError(ComplianceError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class InvalidReviewError(ComplianceError):
    """The transaction cannot be reviewed, or the review is incomplete."""

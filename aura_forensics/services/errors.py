"""Exception hierarchy for the forensic service layer."""


class ForensicServiceError(Exception):
    """Base class for service-level failures surfaced to callers."""


class CaseNotFoundError(ForensicServiceError, LookupError):
    """Raised when an operation targets a case that was never opened."""

    def __init__(self, case_id: str) -> None:
        super().__init__(f"case not found: {case_id}")
        self.case_id = case_id


class MetadataUnavailableError(ForensicServiceError):
    """Raised when a stage needs extracted metadata that does not exist yet."""

    def __init__(self, case_id: str) -> None:
        super().__init__(f"no extracted metadata for case {case_id}")
        self.case_id = case_id


class ProtocolValidationError(ForensicServiceError, ValueError):
    """Raised when an intake document fails protocol header validation."""


class StoreError(ForensicServiceError):
    """Raised when the case store cannot complete an operation."""


class DuplicateDeclarationError(StoreError):
    """Raised when an identical intake document was already frozen."""

    def __init__(self, server_hash: str) -> None:
        super().__init__(f"intake already frozen: {server_hash}")
        self.server_hash = server_hash

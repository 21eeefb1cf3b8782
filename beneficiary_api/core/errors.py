# beneficiary_api/core/errors.py
from fastapi import status


class BeneficiaryAPIError(Exception):
    """Base class for domain errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BeneficiaryAPIError):
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedAreaError(BeneficiaryAPIError):
    """The actor's assigned areas do not cover the requested or target record."""

    status_code = status.HTTP_403_FORBIDDEN


class DuplicateRecordError(BeneficiaryAPIError):
    status_code = status.HTTP_400_BAD_REQUEST


class HierarchyError(BeneficiaryAPIError):
    """An area would break the region > province > municipality > barangay chain."""

    status_code = status.HTTP_400_BAD_REQUEST

"""
Core Application - Shared Infrastructure

Base classes used by the recipients and payouts apps. Nothing in here knows
about orders, commissions or payout gateways.

Models (import from core.models):
    - BaseModel: Abstract model with created_at / updated_at

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID primary key
    - MetadataMixin: JSON metadata column

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Result wrapper for expected success/failure outcomes

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError, ConflictError, ExternalServiceError

Note:
    Models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ExternalServiceError",
]

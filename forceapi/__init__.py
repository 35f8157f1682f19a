# forceapi/__init__.py
from forceapi.core.exceptions import (
    BatchOperationError, ForceAPIError, RecordFailure, SObjectTypeNotFoundError,
    SObjectValidationError, TransportError
)
from forceapi.core.schemas import SObject, SObjectRecord, SObjectRecordAttributes, SObjectResponse
from forceapi.salesforce.client import SalesforceApiClient
from forceapi.salesforce.registry import SchemaRegistry
from forceapi.salesforce.sobjects import ForceAPI

__version__ = "1.0.0"

__all__ = [
    "BatchOperationError",
    "ForceAPI",
    "ForceAPIError",
    "RecordFailure",
    "SObject",
    "SObjectRecord",
    "SObjectRecordAttributes",
    "SObjectResponse",
    "SObjectTypeNotFoundError",
    "SObjectValidationError",
    "SalesforceApiClient",
    "SchemaRegistry",
    "TransportError",
]

# forceapi/core/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, ClassVar, Dict, List, Optional, Protocol, runtime_checkable

from forceapi.core.exceptions import RecordFailure, SObjectValidationError

# --- SObject capability ---

@runtime_checkable
class SObject(Protocol):
    """Anything the drivers can send: it knows its SObject type and its external id field."""

    def api_name(self) -> str: ...

    def external_id_api_name(self) -> str: ...


class SObjectRecordAttributes(BaseModel):
    """The `attributes` block Salesforce uses to echo back which input record a result belongs to."""
    model_config = ConfigDict(populate_by_name=True)

    type: Optional[str] = None
    reference_id: Optional[str] = Field(None, alias="referenceId")
    url: Optional[str] = None


class SObjectRecord(BaseModel):
    """
    Generic record. Subclasses pin the type with `sobject_type`; otherwise the
    type is read from `attributes.type`. Any other field is kept as-is.

        class Account(SObjectRecord):
            sobject_type = "Account"
            external_id_field = "AccountNumber__c"

        Account(Name="Acme", attributes={"type": "Account", "referenceId": "ref1"})
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    sobject_type: ClassVar[Optional[str]] = None
    external_id_field: ClassVar[str] = "Id"

    attributes: Optional[SObjectRecordAttributes] = None

    def api_name(self) -> str:
        if self.sobject_type:
            return self.sobject_type
        if self.attributes and self.attributes.type:
            return self.attributes.type
        raise SObjectValidationError("record has no SObject type (set attributes.type)")

    def external_id_api_name(self) -> str:
        return self.external_id_field

    @property
    def reference_id(self) -> Optional[str]:
        return self.attributes.reference_id if self.attributes else None


# --- Salesforce responses ---

class SalesforceError(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status_code: Optional[str] = Field(None, alias="statusCode")
    message: Optional[str] = None
    fields: Optional[List[str]] = None

class SObjectResponse(BaseModel):
    """Response received after a single-record insert or upsert."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    success: bool = False
    created: Optional[bool] = None
    errors: List[Any] = []

class InsertResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    reference_id: Optional[str] = Field(None, alias="referenceId")
    errors: List[SalesforceError] = []

    @field_validator("errors", mode="before")
    def none_errors_to_list(cls, v):
        return v or []

class InsertMultipleResponse(BaseModel):
    """Composite Tree response: POST /composite/tree/<type>."""
    model_config = ConfigDict(populate_by_name=True)

    has_errors: bool = Field(False, alias="hasErrors")
    results: List[InsertResult] = []

class CollectionResult(BaseModel):
    """One element of the SObject Collections update/delete response array."""
    id: Optional[str] = None
    success: bool = False
    errors: List[SalesforceError] = []

    @field_validator("errors", mode="before")
    def none_errors_to_list(cls, v):
        return v or []


# --- Schema registry entries ---

class SObjectMetaData(BaseModel):
    """Entry of GET /services/data/<version>/sobjects."""
    model_config = ConfigDict(extra="allow")

    name: str
    label: Optional[str] = None
    custom: Optional[bool] = None
    urls: Dict[str, str] = {}

class DescribeField(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    type: Optional[str] = None
    label: Optional[str] = None

class SObjectDescription(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    label: Optional[str] = None
    fields: List[DescribeField] = []
    # Comma separated names of every field a query can project, used for SELECT * style queries
    all_fields: str = ""


# --- Request Schemas ---

class BulkInsertPayload(BaseModel):
    records: List[Dict[str, Any]] = Field(..., description="Records of a single SObject type. Each should carry attributes.referenceId.")

class BulkUpdatePayload(BaseModel):
    records: List[Dict[str, Any]] = Field(..., description="Records with an Id and attributes.type; types may differ.")
    all_or_none: bool = Field(False, description="Roll back each batch remotely if any of its records fails.")


# --- Response Schemas ---

class OperationResponse(BaseModel):
    success: bool
    message: str
    record_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

class BulkOperationResponse(BaseModel):
    success: bool
    message: str
    processed: int = 0
    created: Optional[Dict[str, str]] = Field(None, description="referenceId -> new record Id, for inserts.")
    failures: Optional[List[RecordFailure]] = None

class DescribeResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = Field(None, description="Describe information for one SObject or the whole registry.")

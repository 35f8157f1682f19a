# forceapi/app/routers/sobjects.py
from fastapi import APIRouter, Body, Depends, Query, status
from typing import List, Optional
import logging

from forceapi.core.config import settings
from forceapi.core.schemas import (
    BulkInsertPayload, BulkOperationResponse, BulkUpdatePayload, DescribeResponse,
    OperationResponse, SObjectRecord
)
from forceapi.salesforce.sobjects import ForceAPI

logger = logging.getLogger(settings.APP_NAME)
router = APIRouter()

# One ForceAPI per process so its schema registry and description cache are shared across requests
_force_api: Optional[ForceAPI] = None

async def get_force_api() -> ForceAPI:
    """FastAPI dependency returning the shared ForceAPI instance."""
    global _force_api
    if _force_api is None:
        _force_api = ForceAPI.from_settings()
    return _force_api


def _typed_records(object_name: Optional[str], records: List[dict]) -> List[SObjectRecord]:
    typed = []
    for data in records:
        record = SObjectRecord.model_validate(data)
        if object_name and (record.attributes is None or not record.attributes.type):
            attributes = dict(data.get("attributes") or {})
            attributes["type"] = object_name
            record = SObjectRecord.model_validate({**data, "attributes": attributes})
        typed.append(record)
    return typed


@router.get(
    "/sobjects",
    response_model=DescribeResponse,
    summary="List SObject types",
    description="Returns the cached SObject metadata registry, loading it on first use."
)
async def handle_describe_sobjects_endpoint(force_api: ForceAPI = Depends(get_force_api)):
    sobjects = await force_api.describe_sobjects()
    return DescribeResponse(
        success=True,
        message=f"{len(sobjects)} SObject types available.",
        data={name: meta.model_dump() for name, meta in sobjects.items()}
    )

@router.get(
    "/sobjects/{object_name}/describe",
    response_model=DescribeResponse,
    summary="Describe an SObject",
    description="Returns the cached describe result of one SObject type, including its selectable field list."
)
async def handle_describe_sobject_endpoint(object_name: str, force_api: ForceAPI = Depends(get_force_api)):
    description = await force_api.describe_sobject(SObjectRecord(attributes={"type": object_name}))
    return DescribeResponse(
        success=True,
        message=f"Successfully described SObject {object_name}.",
        data=description.model_dump()
    )

@router.get(
    "/sobjects/{object_name}/{record_id}",
    response_model=OperationResponse,
    summary="Retrieve a Salesforce Record"
)
async def handle_get_record_endpoint(
    object_name: str,
    record_id: str,
    fields: Optional[str] = Query(None, description="Comma-separated list of fields to retrieve."),
    force_api: ForceAPI = Depends(get_force_api)
):
    field_list = [f.strip() for f in fields.split(',') if f.strip()] if fields else None
    record_data = await force_api.get_sobject(record_id, SObjectRecord(attributes={"type": object_name}), field_list)
    record_data.pop("attributes", None)
    return OperationResponse(
        success=True,
        message="Record retrieved successfully.",
        record_id=record_id,
        data=record_data
    )

@router.post(
    "/composite/tree/{object_name}",
    response_model=BulkOperationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Insert multiple records of one SObject type",
    description="Creates records in batches of up to 200. Stops at the first batch that reports errors."
)
async def handle_insert_multiple_endpoint(
    object_name: str,
    payload: BulkInsertPayload = Body(...),
    force_api: ForceAPI = Depends(get_force_api)
):
    records = _typed_records(object_name, payload.records)
    created = await force_api.insert_multiple_sobjects(records)
    logger.info(f"Bulk insert of {len(records)} {object_name} records completed.")
    return BulkOperationResponse(
        success=True,
        message=f"Created {len(created)} {object_name} records.",
        processed=len(records),
        created=created
    )

@router.patch(
    "/composite/sobjects",
    response_model=BulkOperationResponse,
    summary="Update multiple records",
    description="Updates records of any SObject types in batches of up to 200. Every batch is attempted."
)
async def handle_update_multiple_endpoint(
    payload: BulkUpdatePayload = Body(...),
    force_api: ForceAPI = Depends(get_force_api)
):
    records = _typed_records(None, payload.records)
    await force_api.update_multiple_sobjects(records, in_transaction=payload.all_or_none)
    return BulkOperationResponse(
        success=True,
        message=f"Updated {len(records)} records.",
        processed=len(records)
    )

@router.delete(
    "/composite/sobjects",
    response_model=BulkOperationResponse,
    summary="Delete multiple records by Id",
    description="Deletes records in batches of up to 200. Every batch is attempted."
)
async def handle_delete_multiple_endpoint(
    ids: str = Query(..., description="Comma-separated record Ids."),
    all_or_none: bool = Query(False, description="Roll back each batch remotely if any of its records fails."),
    force_api: ForceAPI = Depends(get_force_api)
):
    id_list = [i.strip() for i in ids.split(',') if i.strip()]
    await force_api.delete_multiple_sobjects(id_list, in_transaction=all_or_none)
    return BulkOperationResponse(
        success=True,
        message=f"Deleted {len(id_list)} records.",
        processed=len(id_list)
    )

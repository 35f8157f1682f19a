# forceapi/salesforce/sobjects.py
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from forceapi.core.config import settings
from forceapi.core.exceptions import BatchOperationError, RecordFailure, TransportError
from forceapi.core.schemas import (
    CollectionResult, InsertMultipleResponse, SObject, SObjectDescription, SObjectMetaData, SObjectResponse
)
from forceapi.salesforce.batching import (
    ensure_homogeneous_type, ensure_types_registered, partition,
    reconcile_collection_results, reconcile_insert_response
)
from forceapi.salesforce.client import SalesforceApiClient
from forceapi.salesforce.registry import SchemaRegistry

logger = logging.getLogger(settings.APP_NAME)


def sobject_payload(sobject: SObject) -> Dict[str, Any]:
    """Wire form of a record. Every record carries an `attributes` block with at least its type."""
    if isinstance(sobject, BaseModel):
        payload = sobject.model_dump(by_alias=True, exclude_none=True)
    elif isinstance(sobject, Mapping):
        payload = dict(sobject)
    else:
        payload = {k: v for k, v in vars(sobject).items() if not k.startswith("_")}

    attributes = dict(payload.get("attributes") or {})
    attributes.setdefault("type", sobject.api_name())
    payload["attributes"] = attributes
    return payload


def _reference_id(payload: Dict[str, Any]) -> Optional[str]:
    return payload["attributes"].get("referenceId")


class ForceAPI:
    """
    SObject operations on top of a `SalesforceApiClient` transport.

    Single-record calls are plain pass-throughs. The *_multiple_sobjects
    drivers split their input into batches of at most the configured size and
    send them one after another:

    * insert stops at the first batch whose response has errors;
    * update and delete attempt every batch and raise one combined error.

    A transport failure aborts any driver immediately.
    """

    def __init__(
        self,
        client: SalesforceApiClient,
        registry: Optional[SchemaRegistry] = None,
        create_batch_size: Optional[int] = None,
        update_batch_size: Optional[int] = None,
        delete_batch_size: Optional[int] = None,
    ):
        self.client = client
        self.registry = registry or SchemaRegistry(client)
        self.create_batch_size = create_batch_size or settings.SOBJECT_CREATE_BATCH_SIZE
        self.update_batch_size = update_batch_size or settings.SOBJECT_UPDATE_BATCH_SIZE
        self.delete_batch_size = delete_batch_size or settings.SOBJECT_DELETE_BATCH_SIZE

    @classmethod
    def from_settings(cls) -> "ForceAPI":
        return cls(SalesforceApiClient.from_settings())

    @property
    def api_version(self) -> str:
        return self.client.api_version

    # --- Describe ---

    async def describe_sobjects(self) -> Dict[str, SObjectMetaData]:
        return await self.registry.describe_sobjects()

    async def describe_sobject(self, sobject: SObject) -> SObjectDescription:
        return await self.registry.describe_sobject(sobject.api_name())

    # --- Single record ---

    async def get_sobject(self, sobject_id: str, sobject: SObject, fields: Optional[List[str]] = None) -> Dict[str, Any]:
        uri = await self.registry.row_url(sobject.api_name(), sobject_id)
        params = {"fields": ",".join(fields)} if fields else None
        return await self.client.get(uri, params=params)

    async def insert_sobject(self, sobject: SObject) -> SObjectResponse:
        uri = await self.registry.sobject_url(sobject.api_name())
        resp = await self.client.post(uri, payload=sobject_payload(sobject))
        return SObjectResponse.model_validate(resp or {})

    async def update_sobject(self, sobject_id: str, sobject: SObject) -> None:
        uri = await self.registry.row_url(sobject.api_name(), sobject_id)
        await self.client.patch(uri, payload=sobject_payload(sobject))

    async def delete_sobject(self, sobject_id: str, sobject: SObject) -> None:
        uri = await self.registry.row_url(sobject.api_name(), sobject_id)
        await self.client.delete(uri)

    async def get_sobject_by_external_id(self, external_id: str, sobject: SObject, fields: Optional[List[str]] = None) -> Dict[str, Any]:
        uri = await self.registry.external_id_url(sobject.api_name(), sobject.external_id_api_name(), external_id)
        params = {"fields": ",".join(fields)} if fields else None
        return await self.client.get(uri, params=params)

    async def upsert_sobject_by_external_id(self, external_id: str, sobject: SObject) -> SObjectResponse:
        uri = await self.registry.external_id_url(sobject.api_name(), sobject.external_id_api_name(), external_id)
        payload = sobject_payload(sobject)
        # The external id travels in the URL, not in the body
        payload.pop(sobject.external_id_api_name(), None)
        resp = await self.client.patch(uri, payload=payload)
        if resp is None: # 204: existing record updated
            return SObjectResponse(success=True, created=False)
        return SObjectResponse.model_validate(resp)

    async def delete_sobject_by_external_id(self, external_id: str, sobject: SObject) -> None:
        uri = await self.registry.external_id_url(sobject.api_name(), sobject.external_id_api_name(), external_id)
        await self.client.delete(uri)

    # --- Multiple records ---

    async def insert_multiple_sobjects(self, sobjects: Sequence[SObject]) -> Dict[str, str]:
        """
        Creates unrelated records of one type through the Composite Tree
        resource (API v45.0+), in batches of `create_batch_size`.

        Each record should carry attributes with a unique `referenceId`;
        results are matched back to records by it. Returns the new record ids
        keyed by referenceId. The first batch reporting errors raises
        `BatchOperationError` and later batches are not sent.
        """
        if not sobjects:
            return {}

        sobject_type = ensure_homogeneous_type(sobjects)
        await ensure_types_registered(self.registry, [sobject_type])

        uri = f"/services/data/{self.api_version}/composite/tree/{sobject_type}"
        batches = list(partition(sobjects, self.create_batch_size))
        logger.info(f"Inserting {len(sobjects)} {sobject_type} records in {len(batches)} batch(es)")

        created: Dict[str, str] = {}
        for index, batch in enumerate(batches, start=1):
            records = [sobject_payload(s) for s in batch]
            logger.debug(f"Insert batch {index}/{len(batches)}: {len(records)} records")
            try:
                resp = await self.client.post(uri, payload={"records": records})
            except TransportError as e:
                raise self._batch_transport_error("insert", index, len(batches), e) from e

            insert_resp = InsertMultipleResponse.model_validate(resp or {})
            batch_created, failures = reconcile_insert_response([_reference_id(r) for r in records], insert_resp)
            if insert_resp.has_errors or failures:
                logger.warning(f"Insert batch {index}/{len(batches)} reported {len(failures)} failure(s); skipping remaining batches")
                raise BatchOperationError("insert", failures)
            created.update(batch_created)

        logger.info(f"Inserted {len(created)} {sobject_type} records")
        return created

    async def update_multiple_sobjects(self, sobjects: Sequence[SObject], in_transaction: bool = False) -> None:
        """
        Updates records of any types through SObject Collections (API v43.0+),
        in batches of `update_batch_size`. Each record needs its Id.

        `in_transaction` is sent as `allOrNone`, which only rolls back the
        batch it belongs to. All batches are attempted; failures from every
        batch are raised together as one `BatchOperationError`.
        """
        if not sobjects:
            return

        await ensure_types_registered(self.registry, (s.api_name() for s in sobjects))

        uri = f"/services/data/{self.api_version}/composite/sobjects"
        batches = list(partition(sobjects, self.update_batch_size))
        logger.info(f"Updating {len(sobjects)} records in {len(batches)} batch(es), allOrNone={in_transaction}")

        failures: List[RecordFailure] = []
        for index, batch in enumerate(batches, start=1):
            req = {
                "allOrNone": in_transaction,
                "records": [sobject_payload(s) for s in batch],
            }
            logger.debug(f"Update batch {index}/{len(batches)}: {len(batch)} records")
            try:
                resp = await self.client.patch(uri, payload=req)
            except TransportError as e:
                raise self._batch_transport_error("update", index, len(batches), e) from e

            failures.extend(self._collection_failures("update", index, len(batches), resp))

        if failures:
            raise BatchOperationError("update", failures)

    async def delete_multiple_sobjects(self, ids: Sequence[str], in_transaction: bool = False) -> None:
        """
        Deletes records by Id through SObject Collections (API v43.0+), in
        batches of `delete_batch_size`. Same batch policy as updates.
        """
        if not ids:
            return

        uri = f"/services/data/{self.api_version}/composite/sobjects"
        batches = list(partition(ids, self.delete_batch_size))
        logger.info(f"Deleting {len(ids)} records in {len(batches)} batch(es), allOrNone={in_transaction}")

        failures: List[RecordFailure] = []
        for index, batch in enumerate(batches, start=1):
            params = {"ids": ",".join(batch)}
            if in_transaction:
                params["allOrNone"] = "true"
            logger.debug(f"Delete batch {index}/{len(batches)}: {len(batch)} ids")
            try:
                resp = await self.client.delete_with_response(uri, params=params)
            except TransportError as e:
                raise self._batch_transport_error("delete", index, len(batches), e) from e

            failures.extend(self._collection_failures("delete", index, len(batches), resp))

        if failures:
            raise BatchOperationError("delete", failures)

    @staticmethod
    def _collection_failures(operation: str, index: int, total: int, resp: Any) -> List[RecordFailure]:
        results = [CollectionResult.model_validate(r) for r in (resp or [])]
        failures = reconcile_collection_results(results)
        if failures:
            logger.warning(f"{operation.capitalize()} batch {index}/{total} reported failures for: {', '.join(str(f.identifier) for f in failures)}")
        return failures

    @staticmethod
    def _batch_transport_error(operation: str, index: int, total: int, error: TransportError) -> TransportError:
        logger.error(f"{operation.capitalize()} batch {index}/{total} failed: {error.message}")
        return TransportError(
            f"{operation} batch {index}/{total} failed: {error.message}",
            status_code=error.status_code,
            detail=error.detail
        )

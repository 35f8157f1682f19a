# forceapi/salesforce/batching.py
"""
Building blocks of the multi-record drivers: splitting input into batches,
validating record types before anything is sent, and reconciling Salesforce's
per-record results into `RecordFailure` entries.
"""
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from forceapi.core.config import settings
from forceapi.core.exceptions import RecordFailure, SObjectTypeNotFoundError, SObjectValidationError
from forceapi.core.schemas import CollectionResult, InsertMultipleResponse, SObject
from forceapi.salesforce.registry import SchemaRegistry

logger = logging.getLogger(settings.APP_NAME)

T = TypeVar("T")


def partition(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yields contiguous, order-preserving chunks of at most `size` items."""
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def ensure_homogeneous_type(records: Sequence[SObject]) -> str:
    """Returns the single SObject type shared by every record."""
    sobject_type = records[0].api_name()
    for record in records:
        if record.api_name() != sobject_type:
            raise SObjectValidationError("all objects should have the same type (APIName)")
    return sobject_type


async def ensure_types_registered(registry: SchemaRegistry, sobject_types: Iterable[str]) -> None:
    for sobject_type in dict.fromkeys(sobject_types):
        if not await registry.contains(sobject_type):
            raise SObjectTypeNotFoundError(sobject_type)


def reconcile_insert_response(
    reference_ids: Sequence[Optional[str]],
    response: InsertMultipleResponse,
) -> Tuple[Dict[str, str], List[RecordFailure]]:
    """
    Matches Composite Tree results to the submitted batch by referenceId.

    Returns the created ids keyed by referenceId and the failures. When the
    response flags errors but no result carries an error entry, every listed
    referenceId counts as failed, or every submitted one when none is listed.
    """
    submitted = {ref_id for ref_id in reference_ids if ref_id is not None}
    created: Dict[str, str] = {}
    failures: List[RecordFailure] = []

    for result in response.results:
        if result.reference_id not in submitted:
            logger.warning(f"Insert result for unknown referenceId {result.reference_id!r} (id={result.id})")
        if result.errors:
            failures.extend(
                RecordFailure(identifier=result.reference_id, status_code=e.status_code, message=e.message)
                for e in result.errors
            )
        elif result.id and result.reference_id is not None:
            created[result.reference_id] = result.id

    if response.has_errors:
        # A Composite Tree request is rolled back as a whole
        created = {}
        if not failures:
            failures = [RecordFailure(identifier=r.reference_id) for r in response.results]
        if not failures:
            failures = [RecordFailure(identifier=ref_id) for ref_id in reference_ids]
    return created, failures


def reconcile_collection_results(results: Iterable[CollectionResult]) -> List[RecordFailure]:
    """Failures of an SObject Collections update/delete response, attributed by record id."""
    failures: List[RecordFailure] = []
    for result in results:
        if result.success:
            continue
        if not result.errors:
            failures.append(RecordFailure(identifier=result.id))
            continue
        failures.extend(
            RecordFailure(identifier=result.id, status_code=e.status_code, message=e.message)
            for e in result.errors
        )
    return failures

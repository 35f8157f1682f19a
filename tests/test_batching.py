# tests/test_batching.py
import math

import pytest

from forceapi.core.exceptions import BatchOperationError, RecordFailure, SObjectValidationError
from forceapi.core.schemas import CollectionResult, InsertMultipleResponse, SObjectRecord
from forceapi.salesforce.batching import (
    ensure_homogeneous_type, partition, reconcile_collection_results, reconcile_insert_response
)

from conftest import Account, Contact


# --- Partitioning ---

@pytest.mark.parametrize("n, size", [(0, 200), (1, 200), (199, 200), (200, 200), (201, 200), (250, 200), (400, 200), (7, 3), (9, 3)])
def test_partition_preserves_order_and_sizes(n, size):
    items = list(range(n))
    batches = list(partition(items, size))

    assert len(batches) == math.ceil(n / size)
    assert [i for batch in batches for i in batch] == items
    assert all(len(batch) == size for batch in batches[:-1])
    if batches:
        assert 1 <= len(batches[-1]) <= size

def test_partition_250_by_200():
    batches = list(partition([f"id{i}" for i in range(250)], 200))
    assert [len(b) for b in batches] == [200, 50]
    assert batches[0][0] == "id0"
    assert batches[1][0] == "id200"

@pytest.mark.parametrize("size", [0, -1])
def test_partition_rejects_non_positive_size(size):
    with pytest.raises(ValueError):
        list(partition([1, 2, 3], size))


# --- Validation ---

def test_homogeneous_type_returns_shared_type():
    records = [Account(Name="a"), Account(Name="b")]
    assert ensure_homogeneous_type(records) == "Account"

def test_homogeneous_type_rejects_mixed_types():
    with pytest.raises(SObjectValidationError, match="same type"):
        ensure_homogeneous_type([Account(Name="a"), Contact(LastName="b")])

def test_record_type_from_attributes():
    record = SObjectRecord(Name="x", attributes={"type": "Custom__c", "referenceId": "r1"})
    assert record.api_name() == "Custom__c"
    assert record.reference_id == "r1"
    assert record.external_id_api_name() == "Id"

def test_record_without_type_is_invalid():
    with pytest.raises(SObjectValidationError):
        SObjectRecord(Name="x").api_name()


# --- Reconciliation ---

def test_insert_results_correlate_by_reference_id():
    response = InsertMultipleResponse.model_validate({
        "hasErrors": False,
        "results": [
            {"id": "001B", "referenceId": "r2"},
            {"id": "001A", "referenceId": "r1"},
        ],
    })
    created, failures = reconcile_insert_response(["r1", "r2"], response)
    assert created == {"r1": "001A", "r2": "001B"}
    assert failures == []

def test_insert_errors_attributed_to_reference_ids():
    response = InsertMultipleResponse.model_validate({
        "hasErrors": True,
        "results": [
            {"referenceId": "r2", "errors": [{"statusCode": "REQUIRED_FIELD_MISSING", "message": "Name missing", "fields": ["Name"]}]},
        ],
    })
    created, failures = reconcile_insert_response(["r1", "r2"], response)
    assert created == {}
    assert failures == [RecordFailure(identifier="r2", status_code="REQUIRED_FIELD_MISSING", message="Name missing")]

def test_insert_has_errors_without_details_fails_every_listed_reference():
    response = InsertMultipleResponse.model_validate({
        "hasErrors": True,
        "results": [{"referenceId": "r1"}, {"referenceId": "r2"}],
    })
    _, failures = reconcile_insert_response(["r1", "r2"], response)
    assert [f.identifier for f in failures] == ["r1", "r2"]

def test_insert_has_errors_without_results_fails_every_submitted_reference():
    response = InsertMultipleResponse.model_validate({"hasErrors": True})
    created, failures = reconcile_insert_response(["r1", "r2"], response)
    assert created == {}
    assert [f.identifier for f in failures] == ["r1", "r2"]

def test_collection_results_keep_every_error_entry():
    results = [
        CollectionResult.model_validate({"id": "001A", "success": True, "errors": []}),
        CollectionResult.model_validate({"id": "001B", "success": False, "errors": [
            {"statusCode": "ENTITY_IS_DELETED", "message": "deleted"},
            {"statusCode": "INVALID_CROSS_REFERENCE_KEY", "message": "bad ref"},
        ]}),
        CollectionResult.model_validate({"id": "001C", "success": False, "errors": None}),
    ]
    failures = reconcile_collection_results(results)
    assert [(f.identifier, f.status_code) for f in failures] == [
        ("001B", "ENTITY_IS_DELETED"),
        ("001B", "INVALID_CROSS_REFERENCE_KEY"),
        ("001C", None),
    ]


# --- Aggregate error ---

def test_batch_operation_error_summaries():
    insert_error = BatchOperationError("insert", [RecordFailure(identifier="r1"), RecordFailure(identifier="r2")])
    assert str(insert_error) == "error creating objects, refIDs: r1, r2"

    update_error = BatchOperationError("update", [
        RecordFailure(identifier="001B", status_code="ENTITY_IS_DELETED"),
        RecordFailure(identifier="001B", status_code="INVALID_CROSS_REFERENCE_KEY"),
        RecordFailure(identifier="001C"),
    ])
    assert str(update_error) == "error updating objects: 001B: ENTITY_IS_DELETED, INVALID_CROSS_REFERENCE_KEY; 001C"
    assert update_error.identifiers == ["001B", "001C"]
    assert len(update_error.failures) == 3

def test_batch_operation_error_response_carries_failures():
    error = BatchOperationError("delete", [RecordFailure(identifier="001A", status_code="ENTITY_IS_DELETED", message="gone")])
    response = error.to_response()
    assert response.success is False
    assert response.error_type == "BatchOperationError"
    assert response.failures[0].identifier == "001A"

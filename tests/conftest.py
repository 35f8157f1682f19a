# tests/conftest.py
import json
import os
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Settings are read at import time, so the environment is prepared before any forceapi import.
os.environ["SALESFORCE_INSTANCE_URL"] = "https://test.my.salesforce.com"
os.environ["SALESFORCE_ACCESS_TOKEN"] = "test_access_token"
os.environ["SALESFORCE_API_VERSION"] = "v58.0"
os.environ["API_V1_STR"] = "/api/v1"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FILENAME"] = "" # No file logging during tests

from forceapi.core.schemas import SObjectRecord
from forceapi.salesforce.client import SalesforceApiClient
from forceapi.salesforce.registry import SchemaRegistry
from forceapi.salesforce.sobjects import ForceAPI

INSTANCE_URL = "https://test.my.salesforce.com"
DATA_PATH = "/services/data/v58.0"


def sobject_metadata(name: str) -> Dict[str, Any]:
    base = f"{DATA_PATH}/sobjects/{name}"
    return {
        "name": name,
        "label": name,
        "urls": {
            "sobject": base,
            "describe": f"{base}/describe",
            "rowTemplate": f"{base}/{{ID}}",
        },
    }


class Account(SObjectRecord):
    sobject_type = "Account"
    external_id_field = "AccountNumber__c"


class Contact(SObjectRecord):
    sobject_type = "Contact"


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served, in order."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def make_force_api():
    """
    Builds a ForceAPI whose transport is answered by `handler`.
    The registry is pre-populated with Account and Contact unless `registry_types` says otherwise.
    """
    def factory(handler, registry_types=("Account", "Contact"), **batch_sizes):
        transport = RecordingTransport(handler)
        client = SalesforceApiClient(INSTANCE_URL, "test_access_token", api_version="v58.0", transport=transport)
        registry = SchemaRegistry(client)
        if registry_types is not None:
            registry.populate(sobject_metadata(name) for name in registry_types)
        return ForceAPI(client, registry=registry, **batch_sizes), transport

    return factory


@pytest.fixture
def unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request: {request.method} {request.url}")
    return handler

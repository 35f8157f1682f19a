# forceapi/salesforce/registry.py
import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Union

from forceapi.core.config import settings
from forceapi.core.exceptions import SObjectTypeNotFoundError
from forceapi.core.schemas import SObjectDescription, SObjectMetaData
from forceapi.salesforce.client import SalesforceApiClient

logger = logging.getLogger(settings.APP_NAME)

SOBJECT_KEY = "sobject"
DESCRIBE_KEY = "describe"
ROW_TEMPLATE_KEY = "rowTemplate"
ID_KEY = "{ID}"

# Fields of this type cannot be projected by a SOQL query directly
LOCATION_FIELD_TYPE = "location"


class SchemaRegistry:
    """
    Cached mapping from SObject type name to its metadata (URL templates) and,
    lazily, to its full description.

    The registry starts empty. It is populated by the first lookup, by an
    explicit `load()` warm-up, or by `populate()` with metadata obtained
    elsewhere, and is read-mostly afterwards. Population and each description
    fetch are guarded by asyncio locks so concurrent first access results in a
    single request.
    """

    def __init__(self, client: Optional[SalesforceApiClient] = None):
        self.client = client
        self._sobjects: Dict[str, SObjectMetaData] = {}
        self._descriptions: Dict[str, SObjectDescription] = {}
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._describe_locks: Dict[str, asyncio.Lock] = {}

    @property
    def loaded(self) -> bool:
        return self._loaded

    def populate(self, sobjects: Iterable[Union[SObjectMetaData, Dict[str, Any]]]) -> None:
        """Fills the registry from already-discovered metadata and marks it loaded."""
        for entry in sobjects:
            meta = entry if isinstance(entry, SObjectMetaData) else SObjectMetaData.model_validate(entry)
            self._sobjects[meta.name] = meta
        self._loaded = True

    async def load(self, force: bool = False) -> Dict[str, SObjectMetaData]:
        """Fetches GET /services/data/<version>/sobjects once per registry."""
        if self._loaded and not force:
            return self._sobjects

        async with self._load_lock:
            if self._loaded and not force:
                return self._sobjects
            if self.client is None:
                raise RuntimeError("SchemaRegistry has no client to load SObject metadata with.")

            logger.info("Loading SObject metadata from Salesforce...")
            resp = await self.client.get(f"{self.client.data_path}/sobjects")
            sobjects = (resp or {}).get("sobjects", [])
            self._sobjects = {}
            self.populate(sobjects)
            logger.info(f"Loaded metadata for {len(self._sobjects)} SObject types.")
        return self._sobjects

    async def describe_sobjects(self) -> Dict[str, SObjectMetaData]:
        return await self.load()

    async def get(self, sobject_type: str) -> SObjectMetaData:
        await self.load()
        meta = self._sobjects.get(sobject_type)
        if meta is None:
            raise SObjectTypeNotFoundError(sobject_type)
        return meta

    async def contains(self, sobject_type: str) -> bool:
        await self.load()
        return sobject_type in self._sobjects

    async def sobject_url(self, sobject_type: str) -> str:
        meta = await self.get(sobject_type)
        return meta.urls[SOBJECT_KEY]

    async def row_url(self, sobject_type: str, record_id: str) -> str:
        meta = await self.get(sobject_type)
        return meta.urls[ROW_TEMPLATE_KEY].replace(ID_KEY, record_id, 1)

    async def external_id_url(self, sobject_type: str, external_id_field: str, value: str) -> str:
        return f"{await self.sobject_url(sobject_type)}/{external_id_field}/{value}"

    async def describe_sobject(self, sobject_type: str) -> SObjectDescription:
        """Read-through cache of GET <describe url>, memoized for the life of the registry."""
        cached = self._descriptions.get(sobject_type)
        if cached is not None:
            return cached

        lock = self._describe_locks.setdefault(sobject_type, asyncio.Lock())
        async with lock:
            cached = self._descriptions.get(sobject_type)
            if cached is not None:
                return cached

            await self.load()
            meta = self._sobjects.get(sobject_type)
            if meta is None:
                raise SObjectTypeNotFoundError(
                    sobject_type, f"Unable to find metadata for object: {sobject_type}"
                )

            if self.client is None:
                raise RuntimeError("SchemaRegistry has no client to describe SObjects with.")

            logger.info(f"Describing SObject: {sobject_type}")
            resp = await self.client.get(meta.urls[DESCRIBE_KEY])
            description = SObjectDescription.model_validate(resp)
            description.all_fields = ", ".join(
                field.name for field in description.fields if field.type != LOCATION_FIELD_TYPE
            )
            self._descriptions[sobject_type] = description
            return description

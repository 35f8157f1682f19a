# forceapi/salesforce/client.py
import httpx
import json
import logging
from typing import Any, Dict, Optional

from forceapi.core.config import settings
from forceapi.core.exceptions import TransportError

logger = logging.getLogger(settings.APP_NAME)


class SalesforceApiClient:
    """
    An asynchronous transport for the Salesforce REST API.
    Performs authenticated JSON requests against paths such as
    `/services/data/v58.0/sobjects/Account` and turns network and HTTP status
    failures into `TransportError`. No retries are attempted here.
    """

    def __init__(
        self,
        instance_url: str,
        access_token: str,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.instance_url = instance_url.rstrip('/')
        self.access_token = access_token
        self.api_version = api_version or settings.SALESFORCE_API_VERSION
        self.timeout = timeout if timeout is not None else settings.SALESFORCE_REQUEST_TIMEOUT
        self._transport = transport # httpx.MockTransport in tests

    @classmethod
    def from_settings(cls, **kwargs) -> "SalesforceApiClient":
        if not settings.SALESFORCE_INSTANCE_URL or not settings.SALESFORCE_ACCESS_TOKEN:
            raise ValueError("SALESFORCE_INSTANCE_URL and SALESFORCE_ACCESS_TOKEN must be configured.")
        return cls(settings.SALESFORCE_INSTANCE_URL, settings.SALESFORCE_ACCESS_TOKEN, **kwargs)

    @property
    def data_path(self) -> str:
        return f"/services/data/{self.api_version}"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Sforce-Call-Options": f"client={settings.APP_NAME}/{settings.APP_VERSION}"
        }

    async def _request(
        self,
        method: str,
        uri: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Makes one HTTP request to Salesforce. `uri` is the path part, as found
        in the sobject `urls` metadata.
        """
        url = f"{self.instance_url}{uri}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                logger.debug(f"Salesforce API Request: {method} {url} | Params: {params} | Body: {json.dumps(json_data) if json_data is not None else None}")

                response = await client.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    params=params,
                    json=json_data,
                )
                logger.debug(f"Salesforce API Response: {response.status_code} {response.text[:500]}")

                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                error_detail: Any = e.response.text
                try:
                    error_detail = e.response.json()
                except ValueError: # Not a JSON response
                    pass
                logger.error(f"Salesforce API HTTPStatusError: {e.response.status_code} on {method} {url}. Detail: {error_detail}")
                raise TransportError(
                    f"Salesforce API Error ({e.response.status_code}) on {method} {uri}: {error_detail}",
                    status_code=e.response.status_code,
                    detail=error_detail
                ) from e
            except httpx.RequestError as e: # Covers network errors, timeouts, etc.
                logger.error(f"Salesforce API RequestError: {e.__class__.__name__} on {method} {url}. Detail: {str(e)}", exc_info=True)
                raise TransportError(
                    f"Salesforce API communication error: {e.__class__.__name__}",
                    status_code=503
                ) from e

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Salesforce API returned a non-JSON body ({response.status_code})",
                status_code=502,
                detail=response.text[:500]
            ) from e

    async def get(self, uri: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._request("GET", uri, params=params)
        return self._decode(response)

    async def post(self, uri: str, params: Optional[Dict[str, Any]] = None, payload: Any = None) -> Any:
        response = await self._request("POST", uri, params=params, json_data=payload)
        return self._decode(response)

    async def patch(self, uri: str, params: Optional[Dict[str, Any]] = None, payload: Any = None) -> Any:
        response = await self._request("PATCH", uri, params=params, json_data=payload)
        return self._decode(response)

    async def delete(self, uri: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Deletes a resource. Salesforce answers 204 No Content on success."""
        await self._request("DELETE", uri, params=params)

    async def delete_with_response(self, uri: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """DELETE whose body carries per-record results (SObject Collections)."""
        response = await self._request("DELETE", uri, params=params)
        return self._decode(response)

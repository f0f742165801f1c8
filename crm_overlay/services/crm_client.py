import logging
from typing import Any, Dict, Optional

import httpx

from crm_overlay.core.config import settings
from crm_overlay.core.exceptions import CrmUnavailableError, RecordNotFoundError
from crm_overlay.schemas.common import ObjectType

logger = logging.getLogger(__name__)


class CrmClient:
    """Read-only access to CRM records over the Salesforce REST API.

    Records are fetched through the sObject endpoint and returned as a
    flat ``{field: value}`` mapping; the ``attributes`` envelope
    Salesforce adds to every record is dropped.
    """

    def __init__(
        self,
        instance_url: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._instance_url: str = (
            instance_url if instance_url is not None else settings.CRM_INSTANCE_URL
        ).rstrip("/")
        self._access_token: str = (
            access_token if access_token is not None else settings.CRM_ACCESS_TOKEN
        )
        self._api_version: str = api_version or settings.CRM_API_VERSION
        self._timeout: float = timeout or settings.CRM_TIMEOUT_SECONDS

    def record_url(self, record_id: str, object_type: ObjectType) -> str:
        return (
            f"{self._instance_url}/services/data/{self._api_version}"
            f"/sobjects/{ObjectType(object_type).value}/{record_id}"
        )

    async def fetch_record(
        self, record_id: str, object_type: ObjectType
    ) -> Dict[str, Any]:
        if not self._instance_url:
            logger.error("CRM_INSTANCE_URL is not configured")
            raise CrmUnavailableError("CRM integration is not configured")

        url = self.record_url(record_id, object_type)
        headers = {"Accept": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
        except httpx.TimeoutException:
            logger.error("CRM request timed out: %s", url)
            raise CrmUnavailableError("CRM request timed out. Please try again.")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                logger.warning(
                    "%s %s not found in CRM", ObjectType(object_type).value, record_id
                )
                raise RecordNotFoundError(
                    f"{ObjectType(object_type).value} {record_id} not found"
                )
            logger.error("CRM returned %s for %s", exc.response.status_code, url)
            raise CrmUnavailableError(
                f"CRM returned {exc.response.status_code}. Please try again."
            )
        except httpx.HTTPError as exc:
            logger.error("CRM unreachable: %s (%s)", url, exc)
            raise CrmUnavailableError()

        try:
            payload = response.json()
        except ValueError:
            logger.error("CRM returned a non-JSON body for %s", url)
            raise CrmUnavailableError("CRM returned an unreadable record")
        if not isinstance(payload, dict):
            raise CrmUnavailableError("CRM returned an unreadable record")

        payload.pop("attributes", None)
        return payload

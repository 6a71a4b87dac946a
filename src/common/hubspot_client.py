"""
HubSpot API client wrapper for the survey proxy.
Fetches deal/contact records through the CRM search API and patches
record properties for the survey writeback.
"""

import logging
from typing import List, Optional

import requests

from common.config import HUBSPOT_API_BASE, DEFAULT_REQUEST_TIMEOUT
from common.exceptions import (
    HubSpotAPIException,
    RecordNotFoundException,
    UpstreamException,
)

logger = logging.getLogger(__name__)

# Internal HubSpot property that holds every object's id
OBJECT_ID_PROPERTY = "hs_object_id"


def _response_body(response: requests.Response):
    try:
        return response.json()
    except ValueError:
        return response.text


class HubSpotClient:
    def __init__(
        self,
        access_token: str,
        api_base: str = HUBSPOT_API_BASE,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        deal_properties: Optional[List[str]] = None,
        contact_properties: Optional[List[str]] = None,
    ):
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.deal_properties = list(deal_properties or [])
        self.contact_properties = list(contact_properties or [])
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            }
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def fetch_record(self, record_type: str, record_id: str, properties: List[str]) -> dict:
        """
        Search a CRM object type for the record with the given id.

        Args:
            record_type: HubSpot object type (e.g. "deals", "contacts")
            record_id: HubSpot object id
            properties: Property names to return

        Returns:
            The properties of the first match

        Raises:
            RecordNotFoundException: If the search returns no results
            HubSpotAPIException: If HubSpot answers with an error status
        """
        url = f"{self.api_base}/crm/v3/objects/{record_type}/search"
        payload = {
            "properties": list(properties),
            "filterGroups": [
                {
                    "filters": [
                        {
                            "propertyName": OBJECT_ID_PROPERTY,
                            "value": record_id,
                            "operator": "EQ",
                        }
                    ]
                }
            ],
            "limit": 1,
        }
        response = self._request("post", url, json=payload)
        body = _response_body(response)
        if not isinstance(body, dict):
            logger.error("HubSpot search for %s %s returned an unexpected body", record_type, record_id)
            raise HubSpotAPIException(
                "HubSpot search returned an unexpected response body",
                status=response.status_code,
                body=body,
            )

        results = body.get("results") or []
        if not results:
            raise RecordNotFoundException(record_type, record_id)

        logger.debug("Fetched %s %s", record_type, record_id)
        return results[0].get("properties") or {}

    def get_deal_data(self, deal_id: str) -> dict:
        """Fetch the survey-relevant properties of a deal."""
        return self.fetch_record("deals", deal_id, self.deal_properties)

    def get_contact_data(self, contact_id: str) -> dict:
        """Fetch the survey-relevant properties of a contact."""
        return self.fetch_record("contacts", contact_id, self.contact_properties)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_record(self, record_type: str, record_id: str, properties: dict) -> dict:
        """Patch an object's properties and return HubSpot's response."""
        url = f"{self.api_base}/crm/v3/objects/{record_type}/{record_id}"
        response = self._request("patch", url, json={"properties": properties})
        logger.info("Updated HubSpot %s %s: %s", record_type, record_id, sorted(properties))
        return _response_body(response)

    def write_back(self, record_id: str, record_type: str, fields: dict) -> None:
        """Store the survey correlation fields on the originating record."""
        self.update_record(record_type, record_id, fields)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("HubSpot request %s %s failed: %s", method.upper(), url, e)
            raise UpstreamException(
                f"HubSpot request failed: {e}", details={"url": url}
            ) from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            body = _response_body(response)
            logger.error("HubSpot %s %s -> %s: %s", method.upper(), url, response.status_code, body)
            raise HubSpotAPIException(
                f"HubSpot API error {response.status_code}",
                status=response.status_code,
                body=body,
            ) from e
        return response

    def close(self):
        """Close the HTTP session."""
        self.session.close()

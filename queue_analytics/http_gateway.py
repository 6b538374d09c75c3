"""
HTTP Record Gateway

Reads queue and employee records from a REST records API:

    GET {base_url}/shops/{shop_id}/queues?dateFrom&dateTo&page&limit[&departmentId]
    GET {base_url}/shops/{shop_id}/employees?status&page&limit[&departmentId]

Both endpoints answer ``{"data": [...], "total": N}``. Payloads are
converted to the data model here; anything malformed raises GatewayError.
"""

import logging
from typing import Any, Dict, Optional

import requests

from .constants import EmployeeStatus
from .exceptions import GatewayError
from .gateway import RecordGateway
from .models import EmployeeRecord, Page, QueueRecord

logger = logging.getLogger(__name__)


class HttpRecordGateway(RecordGateway):
    """Record gateway backed by a remote records API"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        api_key: Optional[str] = None,
    ):
        """
        Initialize HTTP gateway.

        Args:
            base_url: Records API base URL
            timeout: HTTP request timeout in seconds
            api_key: Optional bearer token sent with every request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _fetch(self, operation: str, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a records endpoint and return its JSON body"""
        url = f"{self.base_url}{path}"
        context = {"url": url, "params": params}

        try:
            response = requests.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.warning("Records API timeout after %ss: %s", self.timeout, url)
            raise GatewayError(f"timeout after {self.timeout}s", operation, context, e)
        except requests.exceptions.ConnectionError as e:
            logger.warning("Cannot connect to records API at %s", url)
            raise GatewayError("connection failed", operation, context, e)
        except requests.exceptions.RequestException as e:
            raise GatewayError(str(e), operation, context, e)

        if response.status_code != 200:
            logger.warning("Records API returned status %s for %s", response.status_code, url)
            raise GatewayError(f"HTTP {response.status_code}", operation, context)

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError("response is not valid JSON", operation, context, e)

        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise GatewayError("response has no 'data' list", operation, context)
        return body

    @staticmethod
    def _total(body: Dict[str, Any]) -> int:
        try:
            return int(body.get("total", len(body["data"])))
        except (TypeError, ValueError):
            return len(body["data"])

    def get_queues(
        self,
        shop_id: str,
        date_from: str,
        date_to: str,
        page: int = 1,
        limit: int = 10000,
        department_id: Optional[str] = None,
    ) -> Page:
        params = {
            "dateFrom": date_from,
            "dateTo": date_to,
            "page": page,
            "limit": limit,
        }
        if department_id:
            params["departmentId"] = department_id

        body = self._fetch("get_queues", f"/shops/{shop_id}/queues", params)
        records = [QueueRecord.from_dict(raw) for raw in body["data"]]
        logger.debug("Fetched %d queue records for shop %s", len(records), shop_id)
        return Page(data=records, total=self._total(body))

    def get_employees(
        self,
        shop_id: str,
        status_filter: Optional[EmployeeStatus] = EmployeeStatus.ACTIVE,
        page: int = 1,
        limit: int = 100,
        department_id: Optional[str] = None,
    ) -> Page:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if status_filter is not None:
            params["status"] = EmployeeStatus(status_filter).value
        if department_id:
            params["departmentId"] = department_id

        body = self._fetch("get_employees", f"/shops/{shop_id}/employees", params)
        employees = [EmployeeRecord.from_dict(raw) for raw in body["data"]]
        return Page(data=employees, total=self._total(body))

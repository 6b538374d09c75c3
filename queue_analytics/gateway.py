"""
Record Gateway Interface

The engine reads queue and employee records through a RecordGateway. Each
adapter converts its raw rows or payloads to the typed data model before
returning them, so the analyzers never see untyped data.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .constants import EmployeeStatus
from .exceptions import ConfigurationError
from .models import EmployeeRecord, Page, QueueRecord

logger = logging.getLogger(__name__)


class RecordGateway(ABC):
    """Paginated read access to a shop's queue and employee records"""

    @abstractmethod
    def get_queues(
        self,
        shop_id: str,
        date_from: str,
        date_to: str,
        page: int = 1,
        limit: int = 10000,
        department_id: Optional[str] = None,
    ) -> Page:
        """
        Fetch queue records created within an inclusive date range.

        Args:
            shop_id: Shop to read
            date_from: Range start (ISO timestamp)
            date_to: Range end (ISO timestamp)
            page: 1-based page number
            limit: Page size
            department_id: Optional department filter

        Returns:
            Page of QueueRecord with the total number of matching records

        Raises:
            GatewayError: If the records cannot be read
        """

    @abstractmethod
    def get_employees(
        self,
        shop_id: str,
        status_filter: Optional[EmployeeStatus] = EmployeeStatus.ACTIVE,
        page: int = 1,
        limit: int = 100,
        department_id: Optional[str] = None,
    ) -> Page:
        """
        Fetch employee records of a shop.

        Args:
            shop_id: Shop to read
            status_filter: Only employees with this status (None for all)
            page: 1-based page number
            limit: Page size
            department_id: Optional department filter

        Returns:
            Page of EmployeeRecord with the total number of matching records

        Raises:
            GatewayError: If the records cannot be read
        """

    def close(self) -> None:
        """Release resources held by the gateway"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_all_queues(
    gateway: RecordGateway,
    shop_id: str,
    date_from: str,
    date_to: str,
    limit: int = 10000,
    department_id: Optional[str] = None,
) -> List[QueueRecord]:
    """
    Read every queue record of a range.

    One large page normally covers the whole range; further pages are only
    requested when the gateway reports more records than it returned.
    """
    page = gateway.get_queues(shop_id, date_from, date_to, 1, limit, department_id)
    records = list(page.data)
    page_number = 1
    while len(records) < page.total and page.data:
        page_number += 1
        logger.debug(
            "Fetching page %d of queues for shop %s (%d/%d)",
            page_number, shop_id, len(records), page.total
        )
        page = gateway.get_queues(
            shop_id, date_from, date_to, page_number, limit, department_id
        )
        records.extend(page.data)
    return records


def fetch_all_employees(
    gateway: RecordGateway,
    shop_id: str,
    limit: int = 100,
    department_id: Optional[str] = None,
) -> List[EmployeeRecord]:
    """Read every active employee of a shop"""
    page = gateway.get_employees(
        shop_id, EmployeeStatus.ACTIVE, 1, limit, department_id
    )
    employees = list(page.data)
    page_number = 1
    while len(employees) < page.total and page.data:
        page_number += 1
        page = gateway.get_employees(
            shop_id, EmployeeStatus.ACTIVE, page_number, limit, department_id
        )
        employees.extend(page.data)
    return employees


def create_gateway(config) -> RecordGateway:
    """
    Create the gateway selected by ``gateway.type`` in the configuration.

    Args:
        config: Config object

    Returns:
        SQLiteRecordGateway or HttpRecordGateway

    Raises:
        ConfigurationError: If the gateway type is unknown
    """
    gateway_type = config.gateway_type

    if gateway_type == "sqlite":
        from .sqlite_gateway import SQLiteRecordGateway

        logger.info("Using SQLite record gateway: %s", config.database_path)
        return SQLiteRecordGateway(config.database_path, wal_mode=config.wal_mode)

    if gateway_type == "http":
        from .http_gateway import HttpRecordGateway

        logger.info("Using HTTP record gateway: %s", config.gateway_base_url)
        return HttpRecordGateway(
            config.gateway_base_url,
            timeout=config.gateway_timeout,
            api_key=config.gateway_api_key,
        )

    raise ConfigurationError(
        f"Unknown gateway type '{gateway_type}' - must be 'sqlite' or 'http'",
        "gateway.type",
    )

"""
Employee Utilization Analyzer

Computes per-employee serviced minutes and utilization against a fixed
weekly capacity (7 days x 8 hours by default).
"""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from .constants import AnalyticsDefaults, EmployeeStatus
from .math_utils import round_number
from .models import EmployeeRecord, EmployeeUtilization, QueueRecord

logger = logging.getLogger(__name__)


def calculate_utilization(
    records: Sequence[QueueRecord],
    employees: Sequence[EmployeeRecord],
    capacity_minutes: int = AnalyticsDefaults.CAPACITY_MINUTES,
) -> List[EmployeeUtilization]:
    """
    Compute utilization for each active employee.

    Service time of a record counts only when both call and completion
    timestamps exist and the difference is positive. An employee with no
    assigned records reports a utilization of 0.

    Args:
        records: Queue records of the analysis window
        employees: Employee records (inactive ones are skipped)
        capacity_minutes: Staffed minutes that correspond to 100%

    Returns:
        EmployeeUtilization per active employee, in input order
    """
    if capacity_minutes <= 0:
        raise ValueError(f"capacity_minutes must be positive, got {capacity_minutes}")

    by_employee: Dict[str, List[QueueRecord]] = defaultdict(list)
    for record in records:
        if record.served_by_employee_id:
            by_employee[record.served_by_employee_id].append(record)

    result = []
    for employee in employees:
        if employee.status != EmployeeStatus.ACTIVE:
            continue

        assigned = by_employee.get(employee.id, [])
        served_minutes = 0.0
        for record in assigned:
            minutes = record.raw_service_minutes
            if minutes is not None and minutes > 0:
                served_minutes += minutes

        rate = round_number(served_minutes / capacity_minutes * 100) if assigned else 0
        result.append(EmployeeUtilization(
            employee_id=employee.id,
            employee_name=employee.name,
            total_queues=len(assigned),
            total_service_time=round_number(served_minutes),
            utilization_rate=rate,
        ))

    logger.debug(
        "Computed utilization for %d employees (capacity %d min)",
        len(result), capacity_minutes
    )
    return result

from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_HOURS_PER_DAY, DEFAULT_LATE_PENALTY_PER_DAY, DEFAULT_TENANT_ID
from .database.connection import DBConfig, DatabaseConnection
from .database.document_store import MySQLDocumentStore
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .geofence.mysql_location_repository import MySQLLocationRepository
from .geofence.service import GeofenceService
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.service import LeaveResolver
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import PayrollService
from .penalties.mysql_penalty_policy_repository import MySQLPenaltyPolicyRepository
from .penalties.service import PenaltyPolicyEngine
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleResolver


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    store: MySQLDocumentStore

    attendance_repo: MySQLAttendanceRepository
    employees_repo: MySQLEmployeeRepository
    locations_repo: MySQLLocationRepository
    leave_repo: MySQLLeaveRepository
    schedules_repo: MySQLScheduleRepository
    penalty_policies_repo: MySQLPenaltyPolicyRepository
    payroll_repo: MySQLPayrollRepository

    penalty_engine: PenaltyPolicyEngine
    attendance_service: AttendanceService
    payroll_service: PayrollService


def build_container(
    *,
    db_config: dict,
    tenant_id: str = DEFAULT_TENANT_ID,
    hours_per_day: float = DEFAULT_HOURS_PER_DAY,
    late_penalty_per_day: float = DEFAULT_LATE_PENALTY_PER_DAY,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    store = MySQLDocumentStore(conn, tenant_id=tenant_id)

    attendance_repo = MySQLAttendanceRepository(store)
    employees_repo = MySQLEmployeeRepository(store)
    locations_repo = MySQLLocationRepository(store)
    leave_repo = MySQLLeaveRepository(store)
    schedules_repo = MySQLScheduleRepository(store)
    penalty_policies_repo = MySQLPenaltyPolicyRepository(store)
    payroll_repo = MySQLPayrollRepository(store)

    penalty_engine = PenaltyPolicyEngine(penalty_policies_repo, attendance_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        ScheduleResolver(schedules_repo),
        LeaveResolver(leave_repo),
        GeofenceService(locations_repo),
        penalty_engine,
        strategy_factory=AttendanceStrategyFactory(),
    )
    payroll_service = PayrollService(
        payroll_repo,
        employees_repo,
        attendance_service,
        calculator=StandardPayrollCalculator(
            hours_per_day=hours_per_day,
            late_penalty_per_day=late_penalty_per_day,
        ),
    )

    return Container(
        conn=conn,
        store=store,
        attendance_repo=attendance_repo,
        employees_repo=employees_repo,
        locations_repo=locations_repo,
        leave_repo=leave_repo,
        schedules_repo=schedules_repo,
        penalty_policies_repo=penalty_policies_repo,
        payroll_repo=payroll_repo,
        penalty_engine=penalty_engine,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
    )

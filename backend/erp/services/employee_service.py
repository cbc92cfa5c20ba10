# Overview: Service-layer operations for employees, attendance and payroll; encapsulates business logic and store work.

from __future__ import annotations

from ..schemas import (
    EMPLOYEES,
    ATTENDANCE,
    SALARY_RECORDS,
    EMPLOYEE_POLICY,
    ATTENDANCE_POLICY,
    SALARY_POLICY,
)
from ..validation import ValidationError, validate_record, require_non_negative
from ..money import round_amount, round_half_up
from erp.time_utils import today_iso, now_iso
from .document_store import Collection
from .checkout import blend_performance_score


ATTENDANCE_WEIGHTS = {"present": 1.0, "late": 1.0, "half-day": 0.5, "absent": 0.0}


def performance_band(score: float) -> str:
    if score >= 85:
        return "excellent"
    if score >= 70:
        return "good"
    return "needs-improvement"


def _minutes(clock: str) -> int | None:
    try:
        hours, minutes = clock.strip().split(":")[:2]
        return int(hours) * 60 + int(minutes)
    except (AttributeError, ValueError):
        return None


def hours_worked(check_in: str, check_out: str) -> float:
    """Hours between two HH:MM clock readings; an earlier check-out means the shift crossed midnight."""
    start, end = _minutes(check_in or ""), _minutes(check_out or "")
    if start is None or end is None:
        return 0
    if end < start:
        end += 24 * 60
    return round_amount((end - start) / 60)


def attendance_rate(records: list[dict]) -> int:
    if not records:
        return 100
    earned = sum(ATTENDANCE_WEIGHTS.get(r.get("status"), 0.0) for r in records)
    return round_half_up(earned / len(records) * 100)


def staff_summary(employees: list[dict]) -> dict:
    scores = [e.get("performanceScore") or 0 for e in employees]
    return {
        "total_employees": len(employees),
        "active_employees": sum(1 for e in employees if e.get("status") == "active"),
        "total_monthly_salary": round_amount(sum(e.get("salary") or 0 for e in employees)),
        "total_monthly_commission": round_amount(
            sum((e.get("monthlySales") or 0) * (e.get("commission") or 0) / 100 for e in employees)
        ),
        "average_performance": round_half_up(sum(scores) / len(scores)) if scores else 0,
    }


class EmployeeService:
    def __init__(self, store):
        self.employees = Collection(store, EMPLOYEES, EMPLOYEE_POLICY)
        self.attendance = Collection(store, ATTENDANCE, ATTENDANCE_POLICY)
        self.salaries = Collection(store, SALARY_RECORDS, SALARY_POLICY)

    # --------------------------------------------------------------- employees

    def create_employee(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=EMPLOYEE_POLICY, partial=False)
        require_non_negative(patch, "salary", "commission", "monthlyTarget")
        patch.setdefault("joinDate", today_iso())
        employee_id = self.employees.create(patch)
        return {**patch, "id": employee_id}

    def list_employees(self, status: str | None = None) -> list[dict]:
        employees = self.employees.all()
        if status and status != "all":
            employees = [e for e in employees if e.get("status") == status]
        return sorted(employees, key=lambda e: (str(e.get("name", "")).lower(), e.get("id", "")))

    def get_employee(self, employee_id: str) -> dict:
        return self.employees.require(employee_id)

    def update_employee(self, employee_id: str, payload: dict) -> dict:
        self.employees.require(employee_id)
        patch = validate_record(payload=payload, policy=EMPLOYEE_POLICY, partial=True)
        require_non_negative(patch, "salary", "commission", "monthlyTarget")
        self.employees.update(employee_id, patch)
        return self.employees.require(employee_id)

    def delete_employee(self, employee_id: str) -> None:
        self.employees.require(employee_id)
        self.employees.delete(employee_id)

    def subscribe(self, callback):
        return self.employees.subscribe(callback)

    def record_sale(self, employee_id: str, amount: float) -> dict:
        """
        Add a completed sale to the staff member's running totals and blend
        the new target achievement into their performance score.
        """
        employee = self.employees.require(employee_id)
        monthly_sales = (employee.get("monthlySales") or 0) + amount
        commission_rate = employee.get("commission") or 0

        patch = {
            "monthlySales": round_amount(monthly_sales),
            "totalSales": round_amount((employee.get("totalSales") or 0) + amount),
            "totalCommission": round_amount((employee.get("totalCommission") or 0) + amount * commission_rate / 100),
            "performanceScore": blend_performance_score(
                employee.get("performanceScore") or 0,
                monthly_sales,
                employee.get("monthlyTarget") or 0,
            ),
        }
        self.employees.update(employee_id, patch)
        return {**employee, **patch}

    # -------------------------------------------------------------- attendance

    def record_attendance(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=ATTENDANCE_POLICY, partial=False)
        employee = self.employees.require(patch["employeeId"])

        patch.setdefault("date", today_iso())
        patch["employeeName"] = employee.get("name", "")
        patch["hoursWorked"] = hours_worked(patch.get("checkIn", ""), patch.get("checkOut", ""))
        record_id = self.attendance.create(patch)

        history = [r for r in self.attendance.all() if r.get("employeeId") == employee["id"]]
        self.employees.update(employee["id"], {"attendanceRate": attendance_rate(history)})

        return {**patch, "id": record_id}

    def list_attendance(self, employee_id: str | None = None, date: str | None = None) -> list[dict]:
        records = self.attendance.all()
        if employee_id:
            records = [r for r in records if r.get("employeeId") == employee_id]
        if date:
            records = [r for r in records if r.get("date") == date]
        return sorted(records, key=lambda r: (r.get("date", ""), r.get("createdAt", "")), reverse=True)

    # ----------------------------------------------------------------- payroll

    def create_salary_record(self, payload: dict) -> dict:
        patch = validate_record(payload=payload, policy=SALARY_POLICY, partial=False)
        employee = self.employees.require(patch["employeeId"])

        patch.setdefault("basicSalary", employee.get("salary") or 0)
        require_non_negative(patch, "basicSalary", "commission", "bonus", "deductions")
        patch["employeeName"] = employee.get("name", "")
        patch["totalSalary"] = self._total_salary(patch)
        if patch.get("status") == "paid":
            patch.setdefault("paidDate", today_iso())

        record_id = self.salaries.create(patch)
        return {**patch, "id": record_id}

    def update_salary_record(self, record_id: str, payload: dict) -> dict:
        existing = self.salaries.require(record_id)
        patch = validate_record(payload=payload, policy=SALARY_POLICY, partial=True)
        if "employeeId" in patch and patch["employeeId"] != existing.get("employeeId"):
            raise ValidationError("employeeId cannot be changed")
        require_non_negative(patch, "basicSalary", "commission", "bonus", "deductions")

        patch["totalSalary"] = self._total_salary({**existing, **patch})
        self.salaries.update(record_id, patch)
        return self.salaries.require(record_id)

    def mark_salary_paid(self, record_id: str) -> dict:
        self.salaries.require(record_id)
        self.salaries.update(record_id, {"status": "paid", "paidDate": today_iso(), "paidAt": now_iso()})
        return self.salaries.require(record_id)

    def list_salary_records(self, month: str | None = None, employee_id: str | None = None) -> list[dict]:
        records = self.salaries.all()
        if month:
            records = [r for r in records if r.get("month") == month]
        if employee_id:
            records = [r for r in records if r.get("employeeId") == employee_id]
        return sorted(records, key=lambda r: (r.get("month", ""), str(r.get("employeeName", "")).lower()))

    @staticmethod
    def _total_salary(record: dict) -> float:
        return round_amount(
            (record.get("basicSalary") or 0)
            + (record.get("commission") or 0)
            + (record.get("bonus") or 0)
            - (record.get("deductions") or 0)
        )

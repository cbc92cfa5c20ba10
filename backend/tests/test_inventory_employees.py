import pytest

from erp.services.employee_service import attendance_rate, hours_worked, performance_band, staff_summary
from erp.services.inventory_service import derive_stock_fields, stock_level, stock_percentage
from erp.validation import ValidationError


@pytest.fixture
def item(services):
    return services.inventory.create_item({
        "name": "Cotton Roll",
        "code": "CR-1",
        "category": "Fabric",
        "currentStock": 10,
        "minStock": 4,
        "maxStock": 40,
        "reservedStock": 2,
        "salePrice": 300,
    })


class TestInventory:
    def test_create_derives_counters(self, item):
        assert item["availableStock"] == 8
        assert item["status"] == "available"
        assert item["lastUpdated"]

    def test_negative_adjustment_logs_out_movement(self, services, item):
        updated = services.inventory.adjust_stock(item["id"], -3, reason="Sold offline", staff="Ahmed")
        assert updated["currentStock"] == 7

        movements = services.inventory.list_movements(item_id=item["id"])
        assert len(movements) == 1
        assert movements[0]["type"] == "out"
        assert movements[0]["quantity"] == 3
        assert movements[0]["staff"] == "Ahmed"
        assert movements[0]["reference"].startswith("ADJ-")

    def test_adjustment_never_goes_below_zero(self, services, item):
        updated = services.inventory.adjust_stock(item["id"], -20)
        assert updated["currentStock"] == 0
        assert updated["status"] == "out-of-stock"
        assert services.inventory.list_movements()[0]["quantity"] == 20

    def test_positive_adjustment_restores_status(self, services, item):
        services.inventory.adjust_stock(item["id"], -20)
        updated = services.inventory.adjust_stock(item["id"], 5)
        assert updated["currentStock"] == 5
        assert updated["status"] == "available"
        assert sorted(m["type"] for m in services.inventory.list_movements()) == ["in", "out"]

    @pytest.mark.parametrize("quantity", [0, 1.5, "3", True, None])
    def test_adjustment_needs_non_zero_integer(self, services, item, quantity):
        with pytest.raises(ValidationError):
            services.inventory.adjust_stock(item["id"], quantity)

    def test_filters(self, services, item):
        services.inventory.create_item({"name": "Buttons", "code": "BT-1", "category": "Accessories"})
        assert [i["code"] for i in services.inventory.list_items(category="Fabric")] == ["CR-1"]
        assert [i["code"] for i in services.inventory.list_items(status="out-of-stock")] == ["BT-1"]
        assert len(services.inventory.list_items(search="roll")) == 1

    def test_adjust_route(self, client, headers, item):
        response = client.post(f"/api/inventory/{item['id']}/adjust", json={"quantity": -3}, headers=headers)
        assert response.status_code == 200
        assert response.json["item"]["currentStock"] == 7

        movements = client.get(f"/api/inventory/movements?item_id={item['id']}", headers=headers)
        assert movements.json["movements"][0]["staff"] == "Shop Owner"

        response = client.post(f"/api/inventory/{item['id']}/adjust", json={"quantity": 0}, headers=headers)
        assert response.status_code == 400


def test_inventory_helpers():
    assert derive_stock_fields({"currentStock": 0, "status": "damaged"})["status"] == "out-of-stock"
    assert derive_stock_fields({"currentStock": 3, "status": "damaged"})["status"] == "damaged"
    assert stock_level({"currentStock": 3, "minStock": 5}) == "low"
    assert stock_level({"currentStock": 50, "minStock": 5, "maxStock": 40}) == "overstock"
    assert stock_percentage({"currentStock": 50, "maxStock": 40}) == 100
    assert stock_percentage({"currentStock": 10}) == 0


class TestAttendance:
    def test_rate_counts_half_days(self, services, employee):
        for day, status in (("2026-10-01", "present"), ("2026-10-02", "half-day")):
            services.employees.record_attendance({
                "employeeId": employee["id"],
                "date": day,
                "status": status,
                "checkIn": "09:00",
                "checkOut": "17:30",
            })

        assert services.employees.get_employee(employee["id"])["attendanceRate"] == 75
        records = services.employees.list_attendance(employee_id=employee["id"])
        assert [r["date"] for r in records] == ["2026-10-02", "2026-10-01"]
        assert records[0]["hoursWorked"] == 8.5
        assert records[0]["employeeName"] == "Ahmed Ali"

    def test_unknown_employee(self, services):
        from erp.validation import NotFoundError

        with pytest.raises(NotFoundError):
            services.employees.record_attendance({"employeeId": "ghost", "status": "present"})


def test_attendance_helpers():
    assert hours_worked("22:00", "02:00") == 4
    assert hours_worked("", "17:00") == 0
    assert attendance_rate([]) == 100
    assert attendance_rate([{"status": "absent"}, {"status": "late"}]) == 50


def test_performance_band():
    assert performance_band(90) == "excellent"
    assert performance_band(70) == "good"
    assert performance_band(69) == "needs-improvement"


class TestPayroll:
    def test_total_salary(self, services, employee):
        record = services.employees.create_salary_record({
            "employeeId": employee["id"],
            "month": "2026-10",
            "basicSalary": 40000,
            "commission": 1000,
            "bonus": 2000,
            "deductions": 500,
        })
        assert record["totalSalary"] == 42500
        assert record["status"] == "pending"

        updated = services.employees.update_salary_record(record["id"], {"bonus": 0})
        assert updated["totalSalary"] == 40500

        paid = services.employees.mark_salary_paid(record["id"])
        assert paid["status"] == "paid"
        assert paid["paidDate"]

    def test_basic_salary_defaults_to_employee_salary(self, services):
        staff = services.employees.create_employee({"name": "Sana", "position": "Cashier", "salary": 30000})
        record = services.employees.create_salary_record({"employeeId": staff["id"], "month": "2026-10"})
        assert record["totalSalary"] == 30000

    def test_employee_cannot_change(self, services, employee):
        record = services.employees.create_salary_record({"employeeId": employee["id"], "month": "2026-10"})
        with pytest.raises(ValidationError, match="cannot be changed"):
            services.employees.update_salary_record(record["id"], {"employeeId": "other"})


def test_staff_summary(employee):
    summary = staff_summary([employee, {"status": "inactive", "salary": 20000, "performanceScore": 65}])
    assert summary["total_employees"] == 2
    assert summary["active_employees"] == 1
    assert summary["total_monthly_commission"] == 1000
    assert summary["average_performance"] == 70


def test_employee_routes(client, headers, employee):
    listing = client.get("/api/employees", headers=headers)
    assert listing.status_code == 200
    assert listing.json["employees"][0]["performanceBand"] == "good"

    response = client.post("/api/employees/attendance", json={"employeeId": employee["id"], "status": "late"}, headers=headers)
    assert response.status_code == 201

    response = client.post("/api/employees", json={"name": "No Position"}, headers=headers)
    assert response.status_code == 400

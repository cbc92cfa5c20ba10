# backend/erp/schemas.py
"""
Record types of the ERP, one RecordPolicy per store collection.

Records keep the camelCase field names the dashboard works with. Every
record also carries `id`, `createdAt` and (after an update) `updatedAt`,
which the store stamps itself and clients cannot write.
"""
from __future__ import annotations

from .validation import RecordPolicy


# Store paths (one collection per entity)
PRODUCTS = "products"
EMPLOYEES = "employees"
SALES = "sales"
INVENTORY = "inventory"
STOCK_MOVEMENTS = "stockMovements"
CREDIT_ENTRIES = "creditEntries"
DEBIT_ENTRIES = "debitEntries"
BARGAIN_RECORDS = "bargainRecords"
DISPOSAL_RECORDS = "disposalRecords"
ATTENDANCE = "attendance"
SALARY_RECORDS = "salaryRecords"
LOGIN_LOGS = "loginLogs"
LOGOUT_LOGS = "logoutLogs"
SESSIONS = "sessions"


def product_history_path(product_id: str) -> str:
    return f"{PRODUCTS}/{product_id}/history"


# Collections a client may stream over /api/stream/<collection>
STREAMABLE = {
    PRODUCTS, EMPLOYEES, SALES, INVENTORY, STOCK_MOVEMENTS,
    CREDIT_ENTRIES, DEBIT_ENTRIES, BARGAIN_RECORDS, DISPOSAL_RECORDS,
    ATTENDANCE, SALARY_RECORDS,
}


PRODUCT_STATUSES = ("active", "inactive", "discontinued")
EMPLOYEE_STATUSES = ("active", "inactive", "on-leave")
CUSTOMER_TYPES = ("walk-in", "regular", "vip")
PAYMENT_METHODS = ("cash", "card", "mobile", "credit")
PAYMENT_STATUSES = ("paid", "partial", "pending")
DELIVERY_STATUSES = ("pickup", "delivered", "pending", "cancelled")
DELIVERY_TYPES = ("pickup", "delivery")
RETURN_STATUSES = ("none", "partial", "full")
INVENTORY_STATUSES = ("available", "reserved", "damaged", "out-of-stock")
MOVEMENT_TYPES = ("in", "out", "adjustment", "damaged", "returned")
BARGAIN_STATUSES = ("approved", "rejected", "pending")
DISPOSAL_CONDITIONS = ("damaged", "expired", "defective", "unsold", "stolen")
DISPOSAL_METHODS = ("discard", "donate", "sell-discount", "return-supplier", "recycle")
ATTENDANCE_STATUSES = ("present", "absent", "late", "half-day")
SALARY_STATUSES = ("paid", "pending", "processing")

PRICE_FIELDS = ("purchaseCost", "minSalePrice", "maxSalePrice", "currentPrice")


PRODUCT_POLICY = RecordPolicy(
    name="product",
    writable_fields={
        "name", "code", "fabricType", "size", "color",
        "purchaseCost", "minSalePrice", "maxSalePrice", "currentPrice",
        "stock", "minStock", "maxStock", "supplier", "batchInfo",
        "status", "createdDate",
    },
    required_on_create={"name", "code", "currentPrice"},
    numeric_fields=set(PRICE_FIELDS),
    integer_fields={"stock", "minStock", "maxStock"},
    enum_fields={"status": PRODUCT_STATUSES},
    defaults={
        "fabricType": "", "size": "", "color": "", "supplier": "", "batchInfo": "",
        "purchaseCost": 0, "minSalePrice": 0, "maxSalePrice": 0,
        "stock": 0, "minStock": 0, "maxStock": 0, "status": "active",
    },
)

PRICE_HISTORY_POLICY = RecordPolicy(
    name="price history entry",
    writable_fields={"date", *PRICE_FIELDS},
    required_on_create={"date"},
    numeric_fields=set(PRICE_FIELDS),
)

EMPLOYEE_POLICY = RecordPolicy(
    name="employee",
    writable_fields={
        "name", "email", "phone", "position", "department", "joinDate",
        "salary", "commission", "status", "avatar", "address",
        "emergencyContact", "bankAccount", "cnic",
        "monthlySales", "monthlyTarget", "attendanceRate", "performanceScore",
        "totalSales", "totalCommission",
    },
    required_on_create={"name", "position"},
    numeric_fields={
        "salary", "commission", "monthlySales", "monthlyTarget",
        "attendanceRate", "performanceScore", "totalSales", "totalCommission",
    },
    enum_fields={"status": EMPLOYEE_STATUSES},
    defaults={
        "email": "", "phone": "", "department": "", "address": "",
        "emergencyContact": "", "bankAccount": "", "cnic": "",
        "salary": 0, "commission": 0, "status": "active",
        "monthlySales": 0, "monthlyTarget": 0, "attendanceRate": 100,
        "performanceScore": 0, "totalSales": 0, "totalCommission": 0,
    },
)

SALE_POLICY = RecordPolicy(
    name="sale",
    writable_fields={
        "invoiceNumber", "date", "time", "customerName", "customerPhone",
        "customerType", "items", "subtotal", "discount", "tax", "total",
        "paymentMethod", "paymentStatus", "deliveryStatus", "deliveryType",
        "deliveryAddress", "deliveryDate", "staffMember", "staffId", "notes",
        "returnStatus",
    },
    required_on_create={"invoiceNumber", "items", "total"},
    numeric_fields={"subtotal", "discount", "tax", "total"},
    list_fields={"items"},
    enum_fields={
        "customerType": CUSTOMER_TYPES,
        "paymentMethod": PAYMENT_METHODS,
        "paymentStatus": PAYMENT_STATUSES,
        "deliveryStatus": DELIVERY_STATUSES,
        "deliveryType": DELIVERY_TYPES,
        "returnStatus": RETURN_STATUSES,
    },
    defaults={
        "customerName": "Walk-in Customer", "customerPhone": "", "customerType": "walk-in",
        "subtotal": 0, "discount": 0, "tax": 0, "paymentMethod": "cash",
        "paymentStatus": "paid", "deliveryStatus": "pickup", "deliveryType": "pickup",
        "staffMember": "", "notes": "", "returnStatus": "none",
    },
)

INVENTORY_POLICY = RecordPolicy(
    name="inventory item",
    writable_fields={
        "name", "code", "category", "currentStock", "minStock", "maxStock",
        "reservedStock", "status", "location", "supplier",
        "purchasePrice", "salePrice", "expiryDate", "batchNumber",
    },
    required_on_create={"name", "code"},
    numeric_fields={"purchasePrice", "salePrice"},
    integer_fields={"currentStock", "minStock", "maxStock", "reservedStock"},
    enum_fields={"status": INVENTORY_STATUSES},
    defaults={
        "category": "", "location": "", "supplier": "", "batchNumber": "",
        "currentStock": 0, "minStock": 0, "maxStock": 0, "reservedStock": 0,
        "purchasePrice": 0, "salePrice": 0,
    },
)

STOCK_MOVEMENT_POLICY = RecordPolicy(
    name="stock movement",
    writable_fields={"itemId", "itemName", "type", "quantity", "reason", "staff", "date", "reference"},
    required_on_create={"itemId", "type", "quantity"},
    integer_fields={"quantity"},
    enum_fields={"type": MOVEMENT_TYPES},
    defaults={"itemName": "", "reason": "", "staff": "", "reference": ""},
)

_LEDGER_COMMON_FIELDS = {
    "amount", "dueDate", "invoiceNumber", "paidAmount", "notes",
}

CREDIT_POLICY = RecordPolicy(
    name="credit entry",
    writable_fields={"customerName", "customerPhone", "saleDate", *_LEDGER_COMMON_FIELDS},
    required_on_create={"customerName", "amount"},
    numeric_fields={"amount", "paidAmount"},
    defaults={"customerPhone": "", "invoiceNumber": "", "paidAmount": 0, "notes": ""},
)

DEBIT_POLICY = RecordPolicy(
    name="debit entry",
    writable_fields={
        "supplierName", "supplierPhone", "purchaseDate", "description", "category",
        *_LEDGER_COMMON_FIELDS,
    },
    required_on_create={"supplierName", "amount"},
    numeric_fields={"amount", "paidAmount"},
    defaults={
        "supplierPhone": "", "invoiceNumber": "", "paidAmount": 0,
        "description": "", "category": "", "notes": "",
    },
)

PAYMENT_POLICY = RecordPolicy(
    name="payment",
    writable_fields={"amount", "method", "reference", "notes", "date"},
    required_on_create={"amount"},
    numeric_fields={"amount"},
    defaults={"method": "cash", "reference": "", "notes": ""},
)

BARGAIN_POLICY = RecordPolicy(
    name="bargain record",
    writable_fields={
        "date", "time", "productName", "productCode", "originalPrice", "finalPrice",
        "customerName", "customerPhone", "staffMember", "reason", "invoiceNumber",
        "category", "profitMargin", "status",
    },
    required_on_create={"productName", "originalPrice", "finalPrice"},
    numeric_fields={"originalPrice", "finalPrice", "profitMargin"},
    enum_fields={"status": BARGAIN_STATUSES},
    defaults={
        "productCode": "", "customerName": "", "customerPhone": "", "staffMember": "",
        "reason": "", "invoiceNumber": "", "category": "", "profitMargin": 0,
    },
)

DISPOSAL_POLICY = RecordPolicy(
    name="disposal record",
    writable_fields={
        "itemName", "itemCode", "category", "originalPrice", "disposalValue",
        "quantity", "disposalDate", "reason", "condition", "disposalMethod",
        "approvedBy", "notes", "photos", "batchNumber", "supplierName",
    },
    required_on_create={"itemName", "originalPrice", "quantity", "condition", "disposalMethod"},
    numeric_fields={"originalPrice", "disposalValue"},
    integer_fields={"quantity"},
    list_fields={"photos"},
    enum_fields={"condition": DISPOSAL_CONDITIONS, "disposalMethod": DISPOSAL_METHODS},
    defaults={
        "itemCode": "", "category": "", "disposalValue": 0, "reason": "",
        "approvedBy": "", "notes": "",
    },
)

ATTENDANCE_POLICY = RecordPolicy(
    name="attendance record",
    writable_fields={"employeeId", "date", "checkIn", "checkOut", "status", "notes"},
    required_on_create={"employeeId", "status"},
    enum_fields={"status": ATTENDANCE_STATUSES},
    defaults={"checkIn": "", "checkOut": "", "notes": ""},
)

SALARY_POLICY = RecordPolicy(
    name="salary record",
    writable_fields={
        "employeeId", "month", "basicSalary", "commission", "bonus", "deductions",
        "status", "paidDate",
    },
    required_on_create={"employeeId", "month"},
    numeric_fields={"basicSalary", "commission", "bonus", "deductions"},
    enum_fields={"status": SALARY_STATUSES},
    defaults={"commission": 0, "bonus": 0, "deductions": 0, "status": "pending"},
)

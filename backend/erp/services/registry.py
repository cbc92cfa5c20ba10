# Overview: Wires every per-entity service to the app's store; one Services bundle per app.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from .document_store import get_store
from .products_service import ProductService
from .inventory_service import InventoryService
from .employee_service import EmployeeService
from .sales_service import SalesService
from .ledger_service import LedgerService
from .bargaining_service import BargainingService
from .disposal_service import DisposalService
from .auth_service import AuthService


SERVICES_EXTENSION_KEY = "erp.services"


@dataclass
class Services:
    products: ProductService
    inventory: InventoryService
    employees: EmployeeService
    sales: SalesService
    ledger: LedgerService
    bargaining: BargainingService
    disposal: DisposalService
    auth: AuthService

    @classmethod
    def from_store(cls, store) -> "Services":
        return cls(
            products=ProductService(store),
            inventory=InventoryService(store),
            employees=EmployeeService(store),
            sales=SalesService(store),
            ledger=LedgerService(store),
            bargaining=BargainingService(store),
            disposal=DisposalService(store),
            auth=AuthService(store),
        )


def get_services() -> Services:
    services = current_app.extensions.get(SERVICES_EXTENSION_KEY)
    if services is None:
        services = Services.from_store(get_store())
        current_app.extensions[SERVICES_EXTENSION_KEY] = services
    return services

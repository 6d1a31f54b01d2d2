from models.planning import Assignment, DogRoutine, WalkGroup, WeeklySlotInstance
from models.absence import AbsenceRecord, RescheduleInfo, VacationPeriod
from models.billing import (
    Activity,
    Animal,
    Client,
    Expense,
    InvoiceCalculation,
    InvoiceLineItem,
    InvoiceRecord,
    MonthlyPackage,
    MonthlyReport,
    PaymentReminder,
)
from models.business_data import BusinessData

__all__ = [
    "WalkGroup",
    "WeeklySlotInstance",
    "Assignment",
    "DogRoutine",
    "AbsenceRecord",
    "RescheduleInfo",
    "VacationPeriod",
    "Client",
    "Animal",
    "Activity",
    "Expense",
    "InvoiceRecord",
    "InvoiceLineItem",
    "InvoiceCalculation",
    "MonthlyPackage",
    "MonthlyReport",
    "PaymentReminder",
    "BusinessData",
]

"""Regel-Engine: Planung, Absagen, Fakturierung (reine Funktionen, kein I/O)."""

from .errors import InvalidRescheduleError, RulesContractError, UnknownSlotError
from .planning_engine import (
    analyze_weekly_load,
    calculate_weekly_revenue,
    check_routine_compliance,
    detect_assignment_conflicts,
    suggest_optimal_slots,
    validate_capacity,
    validate_dog_assignment,
)
from .absence_manager import (
    calculate_absence_stats,
    calculate_cancellation_charge,
    determine_cancellation_policy,
    generate_vacation_absences,
    suggest_reschedule_dates,
)
from .invoicing_engine import (
    calculate_invoice,
    calculate_volume_discount,
    estimate_monthly_revenue,
    generate_monthly_invoices,
    generate_monthly_report,
    generate_payment_reminders,
)

__all__ = [
    "RulesContractError",
    "UnknownSlotError",
    "InvalidRescheduleError",
    "validate_dog_assignment",
    "analyze_weekly_load",
    "calculate_weekly_revenue",
    "check_routine_compliance",
    "suggest_optimal_slots",
    "validate_capacity",
    "detect_assignment_conflicts",
    "determine_cancellation_policy",
    "calculate_cancellation_charge",
    "generate_vacation_absences",
    "suggest_reschedule_dates",
    "calculate_absence_stats",
    "calculate_invoice",
    "generate_monthly_invoices",
    "generate_payment_reminders",
    "generate_monthly_report",
    "calculate_volume_discount",
    "estimate_monthly_revenue",
]

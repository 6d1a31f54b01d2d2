"""Fehlerklassen für Vertragsverletzungen der Regel-Engine.

Fachliche Ergebnisse (Verstöße, Nicht-Berechtigung, 0 %-Policies) sind
KEINE Exceptions, sondern Rückgabedaten. Exceptions signalisieren nur
strukturell ungültige Eingaben (Programmierfehler des Aufrufers).
"""


class RulesContractError(ValueError):
    """Basisklasse: Eingabe verletzt den Aufrufvertrag der Engine."""


class UnknownSlotError(RulesContractError):
    """Eine Slot-Referenz passt zu keiner bekannten Wochen-Instanz."""

    def __init__(self, slot_ref: str) -> None:
        super().__init__(f"Unbekannter Slot: {slot_ref}")
        self.slot_ref = slot_ref


class InvalidRescheduleError(RulesContractError):
    """Bestätigung eines Reports ohne vorherigen Report-Vorschlag."""

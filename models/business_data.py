"""BusinessData: Datenschnappschuss für die Regel-Engine (Pydantic v2)."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, model_validator

from models.absence import AbsenceRecord, VacationPeriod
from models.billing import Activity, Animal, Client, Expense, InvoiceRecord
from models.enums import ActivityStatus, PaymentStatus
from models.planning import Assignment, DogRoutine, WeeklySlotInstance


class BusinessData(BaseModel):
    """Vollständiger Datensatz: Kunden, Hunde, Planung, Aktivitäten, Rechnungen."""

    clients: list[Client]
    animals: list[Animal]
    routines: list[DogRoutine] = []
    slot_instances: list[WeeklySlotInstance] = []
    assignments: list[Assignment] = []
    activities: list[Activity] = []
    expenses: list[Expense] = []
    invoices: list[InvoiceRecord] = []
    absences: list[AbsenceRecord] = []
    vacations: list[VacationPeriod] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    @model_validator(mode='after')
    def _check_references(self):
        client_ids = {c.id for c in self.clients}
        for animal in self.animals:
            if animal.client_id not in client_ids:
                raise ValueError(
                    f"Hund {animal.id} verweist auf unbekannten Kunden {animal.client_id}"
                )
        animal_ids = {a.id for a in self.animals}
        for routine in self.routines:
            if routine.animal_id not in animal_ids:
                raise ValueError(f"Routine für unbekannten Hund {routine.animal_id}")
        return self

    # ─── Lookups ───

    def client_map(self) -> dict[str, Client]:
        return {c.id: c for c in self.clients}

    def animal_map(self) -> dict[str, Animal]:
        return {a.id: a for a in self.animals}

    def routine_for(self, animal_id: str) -> Optional[DogRoutine]:
        for routine in self.routines:
            if routine.animal_id == animal_id:
                return routine
        return None

    def routines_for_client(self, client_id: str) -> list[DogRoutine]:
        animal_ids = {a.id for a in self.animals if a.client_id == client_id}
        return [r for r in self.routines if r.animal_id in animal_ids]

    def slots_for_week(self, year: int, week_number: int) -> list[WeeklySlotInstance]:
        return [s for s in self.slot_instances
                if s.year == year and s.week_number == week_number]

    def weeks(self) -> list[tuple[int, int]]:
        """Alle (Jahr, Woche)-Paare mit Slot-Instanzen, aufsteigend."""
        return sorted({(s.year, s.week_number) for s in self.slot_instances})

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        done = sum(1 for a in self.activities if a.status == ActivityStatus.DONE)
        overdue = sum(1 for i in self.invoices if i.status == PaymentStatus.OVERDUE)
        package_dogs = sum(1 for r in self.routines if r.use_package and r.is_active)
        lines = [
            f"Clients: {len(self.clients)}",
            f"Chiens: {len(self.animals)} ({package_dogs} au forfait)",
            f"Routines: {len(self.routines)}",
            f"Semaines planifiées: {len(self.weeks())} "
            f"({len(self.slot_instances)} créneaux, {len(self.assignments)} affectations)",
            f"Activités: {len(self.activities)} ({done} effectuées)",
            f"Factures: {len(self.invoices)} ({overdue} en retard)",
            f"Dépenses: {len(self.expenses)}",
            f"Absences: {len(self.absences)}" if self.absences else "",
        ]
        return "\n".join(line for line in lines if line)

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "BusinessData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())

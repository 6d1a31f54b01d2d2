"""Demo-Datengenerator für die Promenade-Regel-Engine.

Erzeugt einen realistischen Monat mit absichtlichen Problemfällen, damit
Validierung, Rechnungen und Mahnungen etwas zu zeigen haben.

Absichtliche Problemfälle:
  1. Überbuchter Slot: LU-B1 der ersten Woche, Kapazität auf 2 reduziert, 3 Hunde
  2. Blockierter Slot: VE-B3 der zweiten Woche (Promeneur en formation)
  3. Routine nicht erfüllt: ein R3-Hund hat in der letzten Woche nur 1 Balade
  4. Überfällige Rechnung: Vormonat, 45 Tage nach Fälligkeit unbezahlt
  5. Forfait-Kunde unter 75 %: R2-Forfait mit nur 3 Balades im Monat
"""

import logging
import random
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from config.schema import BusinessConfig
from models.absence import RegularAssignment, VacationPeriod
from models.billing import Activity, Animal, Client, Expense, InvoiceRecord
from models.business_data import BusinessData
from models.enums import (
    ROUTINE_WALK_COUNT,
    WORK_DAYS,
    AbsenceType,
    ActivityStatus,
    ExpenseCategory,
    GeographicSector,
    PaymentStatus,
    RoutineType,
    ServiceType,
    TimePreference,
    WalkType,
)
from models.planning import Assignment, DogRoutine, WeeklySlotInstance
from rules.absence_manager import generate_vacation_absences, record_cancellation
from rules.dates import iso_week, month_bounds
from rules.invoicing_engine import format_invoice_number
from rules.planning_engine import suggest_optimal_slots

logger = logging.getLogger(__name__)

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Camille", "Léa", "Julie", "Sophie", "Chloé", "Manon", "Sarah", "Laura",
    "Nicolas", "Thomas", "Julien", "Maxime", "Lucas", "David", "Marc", "Pierre",
]

_LAST_NAMES = [
    "Dubois", "Favre", "Rochat", "Bonvin", "Perrin", "Girard", "Mercier",
    "Blanc", "Chevalley", "Jaquet", "Meylan", "Pittet", "Cuendet", "Rey",
]

_DOG_NAMES = [
    "Rex", "Luna", "Max", "Bella", "Filou", "Nala", "Oscar", "Maya",
    "Pepito", "Lola", "Gaston", "Kira", "Rocky", "Praline", "Hugo", "Ulysse",
    "Tango", "Noisette", "Sherlock", "Câline",
]

_BREEDS = [
    "Labrador", "Golden Retriever", "Border Collie", "Berger australien",
    "Beagle", "Jack Russell", "Bouvier bernois", "Cocker", "Croisé",
]

# Routinetyp → Gewicht
_ROUTINE_WEIGHTS: list[tuple[RoutineType, int]] = [
    (RoutineType.R1, 3),
    (RoutineType.R2, 4),
    (RoutineType.R3, 3),
    (RoutineType.ROUTINE_PLUS, 1),
    (RoutineType.PONCTUEL, 2),
]

# Monatliche Fixkosten
_MONTHLY_EXPENSES: list[tuple[ExpenseCategory, str, str]] = [
    (ExpenseCategory.FUEL, "320.00", "Essence camionnette"),
    (ExpenseCategory.INSURANCE, "145.50", "RC professionnelle"),
    (ExpenseCategory.PHONE, "49.90", "Abonnement mobile"),
    (ExpenseCategory.DOG_EQUIPMENT, "86.40", "Laisses et friandises"),
]


class DemoDataGenerator:
    """Generiert einen vollständigen Demo-Monat auf Basis der BusinessConfig.

    Der Demo-Monat ist der Kalendermonat vor reference_date; die Rechnungen
    der Vormonate liegen als InvoiceRecords bei.
    """

    def __init__(
        self,
        config: BusinessConfig,
        seed: Optional[int] = None,
        reference_date: Optional[date] = None,
    ) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.today = reference_date or date.today()
        first_of_current = self.today.replace(day=1)
        self.month_start, self.month_end = month_bounds(first_of_current - timedelta(days=1))

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def generate(self, num_clients: int = 10) -> BusinessData:
        """Erzeugt Kunden, Hunde, Planung, Aktivitäten und Rechnungen."""
        if num_clients < 4:
            raise ValueError("Mindestens 4 Kunden für die Demo-Problemfälle")

        clients, animals = self._generate_clients(num_clients)
        routines = self._generate_routines(animals)
        weeks = self._month_weeks()
        slots = self._generate_slots(weeks)
        assignments = self._assign_routines(routines, slots, weeks)
        slots = self._with_counts(slots, assignments)
        activities = self._generate_activities(assignments, slots, animals, routines)

        data = BusinessData(
            clients=clients,
            animals=animals,
            routines=routines,
            slot_instances=slots,
            assignments=assignments,
            activities=activities,
            expenses=self._generate_expenses(),
            invoices=self._generate_invoice_history(clients),
            created_at=datetime.now(),
        )
        data = self._add_absences(data)
        logger.info(
            f"Demo-Daten erzeugt: {len(clients)} Kunden, {len(animals)} Hunde, "
            f"{len(assignments)} Zuweisungen in {len(weeks)} Wochen"
        )
        return data

    # ─── Kunden & Hunde ───────────────────────────────────────────────────────

    def _generate_clients(self, num_clients: int) -> tuple[list[Client], list[Animal]]:
        clients: list[Client] = []
        animals: list[Animal] = []
        dog_names = list(_DOG_NAMES)
        self.rng.shuffle(dog_names)

        for i in range(1, num_clients + 1):
            first = self.rng.choice(_FIRST_NAMES)
            last = self.rng.choice(_LAST_NAMES)
            client_id = f"C{i:03d}"
            clients.append(Client(
                id=client_id,
                name=f"{first} {last}",
                email=f"{first.lower()}.{last.lower()}@example.ch".replace("é", "e"),
                phone=f"079 {self.rng.randint(100, 999)} {self.rng.randint(10, 99)} "
                      f"{self.rng.randint(10, 99)}",
                address=f"Rue du Lac {self.rng.randint(1, 80)}, 1260 Nyon",
            ))
            # Jeder dritte Kunde hat zwei Hunde
            num_dogs = 2 if i % 3 == 0 else 1
            for _ in range(num_dogs):
                name = dog_names.pop() if dog_names else f"Chien {len(animals) + 1}"
                animals.append(Animal(
                    id=f"A{len(animals) + 1:03d}",
                    name=name,
                    client_id=client_id,
                    breed=self.rng.choice(_BREEDS),
                ))
        return clients, animals

    def _generate_routines(self, animals: list[Animal]) -> list[DogRoutine]:
        """Zufällige Routinen; die ersten Hunde tragen die Problemfälle."""
        types = [t for t, _ in _ROUTINE_WEIGHTS]
        weights = [w for _, w in _ROUTINE_WEIGHTS]
        routines: list[DogRoutine] = []

        for idx, animal in enumerate(animals):
            if idx == 0:
                rtype, use_package = RoutineType.R3, False        # Problemfall 3
            elif idx == 1:
                rtype, use_package = RoutineType.R2, True         # Problemfall 5
            else:
                rtype = self.rng.choices(types, weights=weights)[0]
                use_package = rtype != RoutineType.PONCTUEL and self.rng.random() < 0.5

            walks = max(1, ROUTINE_WALK_COUNT[rtype])
            routines.append(DogRoutine(
                animal_id=animal.id,
                routine_type=rtype,
                preferred_days=sorted(
                    self.rng.sample(WORK_DAYS, walks), key=lambda d: d.day_index
                ),
                time_preference=self.rng.choice(list(TimePreference)),
                sector=self.rng.choice(list(GeographicSector)),
                walk_type_preference=WalkType.COLLECTIVE,
                use_package=use_package,
            ))
        return routines

    # ─── Planung ──────────────────────────────────────────────────────────────

    def _month_weeks(self) -> list[tuple[int, int]]:
        """ISO-Wochen, die den Demo-Monat berühren."""
        weeks: list[tuple[int, int]] = []
        day = self.month_start
        while day <= self.month_end:
            week = iso_week(day)
            if week not in weeks:
                weeks.append(week)
            day += timedelta(days=1)
        return weeks

    def _generate_slots(self, weeks: list[tuple[int, int]]) -> list[WeeklySlotInstance]:
        slots: list[WeeklySlotInstance] = []
        for n, (year, week) in enumerate(weeks):
            for group in self.config.walk_groups:
                slot = WeeklySlotInstance(year=year, week_number=week, group=group)
                if n == 0 and group.id == "LU-B1":
                    slot = slot.model_copy(update={"capacity": 2})        # Problemfall 1
                if n == 1 and group.id == "VE-B3":
                    slot = slot.model_copy(update={                       # Problemfall 2
                        "is_blocked": True,
                        "block_reason": "Promeneur en formation",
                    })
                slots.append(slot)
        return slots

    def _assign_routines(
        self,
        routines: list[DogRoutine],
        slots: list[WeeklySlotInstance],
        weeks: list[tuple[int, int]],
    ) -> list[Assignment]:
        """Verteilt jede Routine Woche für Woche auf die besten freien Slots."""
        assignments: list[Assignment] = []
        counts: dict[str, int] = {}

        def book(animal_id: str, slot: WeeklySlotInstance) -> None:
            assignments.append(Assignment(
                animal_id=animal_id,
                year=slot.year,
                week_number=slot.week_number,
                group_id=slot.group_id,
                is_confirmed=True,
            ))
            counts[slot.slot_id] = counts.get(slot.slot_id, 0) + 1

        # Problemfall 1: drei Hunde im verkleinerten LU-B1 der ersten Woche
        first_year, first_week = weeks[0]
        overbooked = next(
            s for s in slots
            if (s.year, s.week_number) == (first_year, first_week) and s.group_id == "LU-B1"
        )
        for routine in routines[2:5]:
            book(routine.animal_id, overbooked)

        last_week = weeks[-1]
        for year, week in weeks:
            week_slots = [s for s in slots if (s.year, s.week_number) == (year, week)]
            for idx, routine in enumerate(routines):
                wanted = routine.expected_weekly_walks
                if routine.routine_type == RoutineType.PONCTUEL:
                    wanted = 1 if self.rng.random() < 0.5 else 0
                if idx == 0 and (year, week) == last_week:
                    wanted = 1                                            # Problemfall 3

                used_days = {
                    a.group_id.split("-")[0] for a in assignments
                    if a.animal_id == routine.animal_id and a.same_week(year, week)
                }
                wanted -= len(used_days)
                while wanted > 0:
                    current = [s.with_count(counts.get(s.slot_id, 0)) for s in week_slots]
                    free = [s for s in current if s.day.code not in used_days]
                    suggestions = suggest_optimal_slots(
                        routine.animal_id, routine, free, max_suggestions=1
                    )
                    if not suggestions:
                        logger.debug(f"Kein freier Slot für {routine.animal_id} in W{week}")
                        break
                    target = next(s for s in current if s.slot_id == suggestions[0].slot_id)
                    book(routine.animal_id, target)
                    used_days.add(target.day.code)
                    wanted -= 1
        return assignments

    def _with_counts(
        self, slots: list[WeeklySlotInstance], assignments: list[Assignment]
    ) -> list[WeeklySlotInstance]:
        counts: dict[str, int] = {}
        for a in assignments:
            counts[a.slot_id] = counts.get(a.slot_id, 0) + 1
        return [s.with_count(counts.get(s.slot_id, 0)) for s in slots]

    # ─── Aktivitäten ──────────────────────────────────────────────────────────

    def _generate_activities(
        self,
        assignments: list[Assignment],
        slots: list[WeeklySlotInstance],
        animals: list[Animal],
        routines: list[DogRoutine],
    ) -> list[Activity]:
        """Eine Balade-Aktivität pro Zuweisung im Demo-Monat, plus Zusatzleistungen."""
        slot_map = {s.slot_id: s for s in slots}
        animal_map = {a.id: a for a in animals}
        under_used = routines[1].animal_id   # Problemfall 5
        activities: list[Activity] = []

        for a in assignments:
            walk_date = slot_map[a.slot_id].walk_date
            if not (self.month_start <= walk_date <= self.month_end):
                continue
            if a.animal_id == under_used and sum(
                1 for act in activities if act.animal_id == under_used
            ) >= 3:
                continue
            animal = animal_map[a.animal_id]
            activities.append(Activity(
                id=f"ACT-{len(activities) + 1:04d}",
                client_id=animal.client_id,
                animal_id=animal.id,
                animal_name=animal.name,
                service_type=ServiceType.GROUP_WALK,
                date=walk_date,
                status=ActivityStatus.DONE if walk_date < self.today else ActivityStatus.PLANNED,
                is_from_routine=True,
            ))

        # Zusatzleistungen an zufälligen Werktagen
        extras = [
            (ServiceType.EDUCATION, None),
            (ServiceType.TRANSPORT, None),
            (ServiceType.INDIVIDUAL_WALK, None),
            (ServiceType.DOG_SITTING, Decimal("55.00")),
        ]
        for service, price in extras:
            animal = self.rng.choice(animals[2:])
            day = self.month_start + timedelta(days=self.rng.randint(0, 27))
            while day.weekday() > 4:
                day += timedelta(days=1)
            activities.append(Activity(
                id=f"ACT-{len(activities) + 1:04d}",
                client_id=animal.client_id,
                animal_id=animal.id,
                animal_name=animal.name,
                service_type=service,
                date=day,
                unit_price=price,
            ))
        return activities

    # ─── Ausgaben & Rechnungshistorie ─────────────────────────────────────────

    def _generate_expenses(self) -> list[Expense]:
        expenses = []
        for n, (category, amount, description) in enumerate(_MONTHLY_EXPENSES, 1):
            expenses.append(Expense(
                id=f"EXP-{n:03d}",
                category=category,
                amount=Decimal(amount),
                date=self.month_start + timedelta(days=self.rng.randint(0, 20)),
                description=description,
            ))
        return expenses

    def _generate_invoice_history(self, clients: list[Client]) -> list[InvoiceRecord]:
        """Rechnungen des Vormonats; die erste ist überfällig (Problemfall 4)."""
        prev_start, prev_end = month_bounds(self.month_start - timedelta(days=1))
        prefix = self.config.company.invoice_prefix
        records: list[InvoiceRecord] = []

        for seq, client in enumerate(clients, 1):
            issue = prev_end + timedelta(days=1)
            due = issue + timedelta(days=self.config.billing.payment_delay_days)
            status = PaymentStatus.PAID if self.rng.random() < 0.7 else PaymentStatus.SENT
            reminder_count = 0
            last_reminder = None
            if seq == 1:
                due = self.today - timedelta(days=45)
                status = PaymentStatus.OVERDUE
                reminder_count = 1
                last_reminder = self.today - timedelta(days=10)
            records.append(InvoiceRecord(
                id=f"INV-{seq:03d}",
                invoice_number=format_invoice_number(prefix, prev_start, seq),
                client_id=client.id,
                client_name=client.name,
                client_email=client.email,
                total=Decimal(self.rng.choice(["115.00", "220.00", "150.00", "315.00"])),
                status=status,
                issue_date=issue,
                due_date=due,
                last_reminder_date=last_reminder,
                reminder_count=reminder_count,
            ))
        return records

    # ─── Absagen & Urlaub ─────────────────────────────────────────────────────

    def _add_absences(self, data: BusinessData) -> BusinessData:
        """Eine späte Absage, ein kranker Hund und eine Urlaubswoche."""
        slot_map = {s.slot_id: s for s in data.slot_instances}
        animals = data.animal_map()
        clients = data.client_map()
        vacation_animal = data.animals[-1]
        candidates = [
            a for a in data.assignments
            if a.animal_id != vacation_animal.id
            and self.month_start <= slot_map[a.slot_id].walk_date <= self.month_end
        ]
        middle = len(candidates) // 2
        cases = [
            (AbsenceType.EVENEMENT_FAMILIAL, timedelta(hours=10)),
            (AbsenceType.CHIEN_MALADE, timedelta(hours=2)),
        ]

        records = []
        for assignment, (absence_type, notice) in zip(candidates[middle:middle + 2], cases):
            slot = slot_map[assignment.slot_id]
            animal = animals[assignment.animal_id]
            routine = data.routine_for(animal.id)
            walk_time = datetime.combine(
                slot.walk_date,
                time.fromisoformat(self.config.planning.block_time(slot.block).start_time),
            )
            records.append(record_cancellation(
                animal_id=animal.id,
                client_id=animal.client_id,
                group_id=assignment.group_id,
                original_date=walk_time,
                cancellation_time=walk_time - notice,
                absence_type=absence_type,
                is_package_client=bool(routine and routine.use_package),
                animal_name=animal.name,
                client_name=clients[animal.client_id].name,
                base_price=self.config.pricing.cancellation_base_price,
                created_by="demo",
            ))

        # Urlaub: letzter Hund, letzte sieben Tage des Monats
        regular = sorted({
            a.group_id for a in data.assignments if a.animal_id == vacation_animal.id
        })
        vacation = VacationPeriod(
            id="VAC-001",
            animal_id=vacation_animal.id,
            animal_name=vacation_animal.name,
            client_id=vacation_animal.client_id,
            client_name=clients[vacation_animal.client_id].name,
            start_date=self.month_end - timedelta(days=6),
            end_date=self.month_end,
            affected_group_ids=regular,
        )
        groups = self.config.group_map()
        records += generate_vacation_absences(
            vacation,
            [RegularAssignment(group_id=g, day=groups[g].day) for g in regular if g in groups],
            now=datetime.combine(self.month_start, time(8, 0)),
            base_price=self.config.pricing.cancellation_base_price,
        )
        return data.model_copy(update={"absences": records, "vacations": [vacation]})

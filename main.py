"""Promenade - Haupt-CLI für Planung, Absagen und Fakturierung.

Verwendung:
  python main.py setup                      Standard-Konfiguration anlegen
  python main.py config show                Konfiguration anzeigen
  python main.py generate --export-json     Demo-Monat erzeugen und speichern
  python main.py validate                   Wochenauslastung + Routinen prüfen
  python main.py assign <hund> <gruppe>     Zuweisung prüfen, Slots vorschlagen
  python main.py cancel <hund> ...          Absage erfassen (Policy + Gebühr)
  python main.py absences                   Absage-Statistik
  python main.py invoices --month 2025-03   Monatsrechnungen (Excel + PDF)
  python main.py reminders                  Zahlungserinnerungen
  python main.py report --month 2025-03     Monatsbericht
  python main.py estimate                   Umsatzschätzung aus den Routinen
  python main.py scenario save <name>       Szenario speichern
  python main.py scenario load <name>       Szenario laden
  python main.py scenario list              Szenarien auflisten
"""

import logging
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from models.enums import AbsenceType

console = Console()

# Standard-Pfad für gespeicherte BusinessData
DEFAULT_DATA_JSON = Path("output/business_data.json")
DEFAULT_OUTPUT_DIR = Path("output")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Aucune configuration trouvée.[/red]\n"
            "Lancez d'abord [bold]python main.py setup[/bold]."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_data_or_abort(json_path: str, gen_first: bool, config, seed: int = 42):
    """Lädt den Datensatz aus JSON oder erzeugt einen Demo-Monat."""
    from models.business_data import BusinessData

    if gen_first:
        from data.demo_data import DemoDataGenerator
        return DemoDataGenerator(config, seed=seed).generate()

    p = Path(json_path)
    if not p.exists():
        console.print(
            f"[red]Fichier de données introuvable: {p}[/red]\n"
            "Utilisez [bold]python main.py generate --export-json[/bold] "
            "ou l'option [bold]--generate[/bold]."
        )
        sys.exit(1)
    try:
        return BusinessData.load_json(p)
    except ValueError as e:
        console.print(f"[red]Fichier de données invalide: {p}[/red]\n{e}")
        sys.exit(1)


def _parse_month(value: Optional[str]) -> date:
    """"2025-03" → date(2025, 3, 1); ohne Angabe der Vormonat."""
    if not value:
        return (date.today().replace(day=1) - timedelta(days=1)).replace(day=1)
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        raise click.BadParameter(f"Format attendu AAAA-MM, reçu: {value}")


def _parse_week(value: str) -> tuple[int, int]:
    """"2025-W10" → (2025, 10); die Woche muss im ISO-Jahr existieren."""
    from rules.dates import max_iso_weeks
    try:
        year, week = (int(part) for part in value.upper().split("-W"))
    except ValueError:
        raise click.BadParameter(f"Format attendu AAAA-Wnn, reçu: {value}")
    if not 1 <= week <= max_iso_weeks(year):
        raise click.BadParameter(f"L'année {year} n'a pas de semaine {week}.")
    return year, week


_data_options = [
    click.option("--json-path", default=str(DEFAULT_DATA_JSON),
                 help="Chemin du fichier JSON de données."),
    click.option("--generate", "gen_first", is_flag=True, default=False,
                 help="Générer d'abord un mois de démonstration (seed 42)."),
]


def data_options(func):
    for option in reversed(_data_options):
        func = option(func)
    return func


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
@click.option("--force", is_flag=True, default=False, help="Écraser sans demander.")
def cmd_setup(force: bool):
    """Crée la configuration par défaut (Django & Co, 15 groupes)."""
    from config.defaults import default_business_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print("[yellow]Une configuration existe déjà.[/yellow]")
        if not click.confirm("Réinitialiser quand même ?", default=False):
            return

    mgr.save(default_business_config())
    console.print("[bold green]Configuration créée ![/bold green]")
    console.print("Lancez maintenant [bold]python main.py generate --export-json[/bold].")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Afficher la configuration."""


@cmd_config.command("show")
def config_show():
    """Affiche la configuration active."""
    from models.enums import ROUTINE_LABELS, SERVICE_TYPE_LABELS
    from rules.money import format_chf

    mgr, config = _load_config_or_abort()
    company = config.company
    console.print(Panel(
        f"[bold]{company.name}[/bold]  |  {company.email}  |  {company.phone}",
        title="Entreprise",
        border_style="cyan",
    ))

    table = Table(title="Tarifs", box=box.ROUNDED)
    table.add_column("Prestation")
    table.add_column("Prix", justify="right")
    for service, price in config.pricing.default_prices.items():
        table.add_row(SERVICE_TYPE_LABELS[service], format_chf(price, company.currency))
    console.print(table)

    table2 = Table(title="Forfaits mensuels", box=box.ROUNDED)
    table2.add_column("Routine")
    table2.add_column("Balades/sem.", justify="right")
    table2.add_column("Forfait", justify="right")
    table2.add_column("Par balade", justify="right")
    for p in config.packages:
        table2.add_row(
            ROUTINE_LABELS[p.routine_type], str(p.walks_per_week),
            format_chf(p.monthly_price, company.currency),
            format_chf(p.price_per_walk, company.currency),
        )
    console.print(table2)

    cc = config.cancellation
    console.print(
        f"\n[bold]Annulations:[/bold] gratuit >= {cc.full_refund_hours}h | "
        f"{cc.partial_charge_percent}% >= {cc.partial_charge_hours}h | 100% en dessous"
    )
    console.print(
        f"[bold]Facturation:[/bold] TVA {config.billing.tax_rate}% | "
        f"délai {config.billing.payment_delay_days} jours | "
        f"rappels tous les {config.reminders.interval_days} jours"
    )
    console.print(
        f"[bold]Groupes:[/bold] {len(config.walk_groups)} | "
        f"capacité max. {config.planning.max_capacity}"
    )


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Seed pour des données reproductibles.")
@click.option("--clients", "num_clients", default=10, help="Nombre de clients.")
@click.option("--export-json", is_flag=True, default=False,
              help="Enregistrer le jeu de données en JSON.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Chemin pour l'export JSON.")
def cmd_generate(seed: int, num_clients: int, export_json: bool, json_path: str):
    """Génère un mois de démonstration (clients, chiens, planning, factures)."""
    mgr, config = _load_config_or_abort()
    from data.demo_data import DemoDataGenerator

    console.print("[bold]Génération des données de démonstration...[/bold]")
    try:
        data = DemoDataGenerator(config, seed=seed).generate(num_clients=num_clients)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(f"\n[dim]{data.summary()}[/dim]")

    if export_json:
        out_path = Path(json_path)
        data.save_json(out_path)
        console.print(f"[green]✓[/green] JSON enregistré: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@data_options
def cmd_validate(json_path: str, gen_first: bool):
    """Contrôle charge hebdomadaire, routines et conflits d'affectation."""
    from export.helpers import money_str
    from rules.planning_engine import (
        analyze_weekly_load, calculate_weekly_revenue, check_week_compliance,
        detect_assignment_conflicts, validate_capacity,
    )

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    console.print(f"\n{data.summary()}\n")

    problems = 0
    for group in config.walk_groups:
        result = validate_capacity(
            group.default_capacity, group.walk_type, config.planning.max_capacity
        )
        for v in result.violations:
            console.print(f"[yellow]{group.id}:[/yellow] {v.description}")
        problems += len(result.errors)

    for year, week in data.weeks():
        console.rule(f"Semaine {year}-W{week:02d}")
        load = analyze_weekly_load(
            data.slots_for_week(year, week), config.planning.near_capacity_percent
        )
        load.print_rich()
        week_assignments = [a for a in data.assignments if a.same_week(year, week)]
        revenue = calculate_weekly_revenue(week_assignments, data.slot_instances)
        console.print(f"Chiffre d'affaires prévu: {money_str(revenue)} {config.company.currency}")
        problems += len(load.overbooked_slots)

        for c in check_week_compliance(data.routines, data.assignments, year, week):
            if not c.is_compliant:
                console.print(f"[yellow]⚠[/yellow] {c.message}")

    conflicts = detect_assignment_conflicts(data.assignments, data.slot_instances)
    for conflict in conflicts:
        console.print(f"[red]✗[/red] {conflict.details}")
    problems += sum(1 for c in conflicts if c.conflict_type == "double_booking")

    sys.exit(0 if problems == 0 else 1)


# ─── ASSIGN ───────────────────────────────────────────────────────────────────

@click.command("assign")
@click.argument("animal_id")
@click.argument("group_id")
@click.option("--week", "week_ref", required=True, help="Semaine ISO, p.ex. 2025-W10.")
@click.option("--suggest", is_flag=True, default=False,
              help="Proposer les meilleurs créneaux de la semaine.")
@data_options
def cmd_assign(animal_id: str, group_id: str, week_ref: str, suggest: bool,
               json_path: str, gen_first: bool):
    """Vérifie l'affectation d'un chien à un groupe (sans l'enregistrer)."""
    from rules.errors import RulesContractError
    from rules.dates import format_date_fr, monday_of_iso_week
    from rules.planning_engine import suggest_optimal_slots, validate_dog_assignment

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    year, week = _parse_week(week_ref)
    slots = data.slots_for_week(year, week)
    routine = data.routine_for(animal_id)

    try:
        result = validate_dog_assignment(
            animal_id,
            f"{year}-W{week:02d}-{group_id.upper()}",
            data.assignments,
            slots,
            routine=routine,
            animal_sector=routine.sector if routine else None,
            allow_same_day=config.planning.allow_same_day_double_booking,
            max_walks_per_week=config.planning.max_walks_per_week,
        )
    except RulesContractError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if result.is_valid and not result.violations:
        console.print("[green]✓[/green] Affectation possible.")
    for v in result.violations:
        color = "red" if v.severity == "error" else "yellow"
        console.print(f"[{color}]{v.code}[/{color}]: {v.description}")

    if suggest and routine is not None:
        monday = format_date_fr(monday_of_iso_week(year, week))
        table = Table(title=f"Créneaux proposés pour {animal_id} (semaine du {monday})",
                      box=box.ROUNDED)
        table.add_column("Créneau", style="bold")
        table.add_column("Score", justify="right")
        table.add_column("Places", justify="right")
        for s in suggest_optimal_slots(
            animal_id, routine, slots, config.planning.max_suggestions
        ):
            table.add_row(s.slot_id, str(s.score), str(s.available_places))
        console.print(table)

    sys.exit(0 if result.is_valid else 1)


# ─── CANCEL ───────────────────────────────────────────────────────────────────

@click.command("cancel")
@click.argument("animal_id")
@click.option("--group", "group_id", required=True, help="Groupe, p.ex. LU-B1.")
@click.option("--date", "walk_day", required=True, type=click.DateTime(["%Y-%m-%d"]),
              help="Date de la balade (AAAA-MM-JJ).")
@click.option("--at", "cancelled_at", default=None,
              type=click.DateTime(["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]),
              help="Moment de l'annulation (défaut: maintenant).")
@click.option("--type", "absence_type", default="AUTRE",
              type=click.Choice([t.value for t in AbsenceType]),
              help="Motif de l'absence.")
@data_options
def cmd_cancel(animal_id: str, group_id: str, walk_day: datetime,
               cancelled_at: Optional[datetime], absence_type: str,
               json_path: str, gen_first: bool):
    """Enregistre une annulation: politique, frais et dates de report."""
    from rules.absence_manager import (
        attach_reschedule, generate_cancellation_notification, record_cancellation,
        suggest_reschedule_dates,
    )

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    animal = data.animal_map().get(animal_id)
    group = config.group_map().get(group_id.upper())
    if animal is None or group is None:
        console.print(f"[red]Chien ou groupe inconnu: {animal_id} / {group_id}[/red]")
        sys.exit(1)

    start = config.planning.block_time(group.block).start_time
    original = datetime.combine(walk_day.date(), datetime.strptime(start, "%H:%M").time())
    routine = data.routine_for(animal.id)
    cc = config.cancellation

    record = record_cancellation(
        animal_id=animal.id,
        client_id=animal.client_id,
        group_id=group.id,
        original_date=original,
        cancellation_time=cancelled_at or datetime.now(),
        absence_type=AbsenceType(absence_type),
        is_package_client=bool(routine and routine.use_package),
        animal_name=animal.name,
        client_name=data.client_map()[animal.client_id].name,
        base_price=config.pricing.cancellation_base_price,
        created_by="cli",
        full_refund_hours=cc.full_refund_hours,
        partial_charge_hours=cc.partial_charge_hours,
        partial_charge_percent=cc.partial_charge_percent,
    )

    if routine is not None:
        suggestions = suggest_reschedule_dates(
            original.date(),
            data.slot_instances,
            preferred_days=routine.preferred_days,
            time_preference=routine.time_preference,
            max_suggestions=config.planning.max_suggestions,
        )
        if suggestions:
            record = attach_reschedule(record, suggestions[0])

    console.print(Panel(
        generate_cancellation_notification(record, config.company.currency),
        title=record.id,
        border_style="red" if record.is_charged else "green",
    ))


# ─── ABSENCES ─────────────────────────────────────────────────────────────────

@click.command("absences")
@data_options
def cmd_absences(json_path: str, gen_first: bool):
    """Statistiques des absences enregistrées."""
    from models.enums import ABSENCE_TYPE_LABELS, CANCELLATION_POLICY_LABELS, DAY_LABELS
    from rules.absence_manager import calculate_absence_stats
    from rules.money import format_chf

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    stats = calculate_absence_stats(data.absences, config.pricing.cancellation_base_price)
    currency = config.company.currency

    console.print(Panel(
        f"Absences: {stats.total_absences}  |  "
        f"Facturé: {format_chf(stats.total_charged_amount, currency)}  |  "
        f"Manque à gagner: {format_chf(stats.total_lost_revenue, currency)}",
        title="Absences",
        border_style="cyan",
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Catégorie")
    table.add_column("Nombre", justify="right")
    for t, n in stats.by_type.items():
        if n:
            table.add_row(ABSENCE_TYPE_LABELS[t], str(n))
    for p, n in stats.by_policy.items():
        if n:
            table.add_row(CANCELLATION_POLICY_LABELS[p], str(n))
    for d, n in stats.by_weekday.items():
        if n:
            table.add_row(DAY_LABELS[d], str(n))
    console.print(table)

    for entry in stats.most_frequent_clients:
        console.print(f"  {entry.client_name}: {entry.absence_count}")


# ─── INVOICES ─────────────────────────────────────────────────────────────────

@click.command("invoices")
@click.option("--month", "month_ref", default=None, help="Mois AAAA-MM (défaut: mois précédent).")
@click.option("--output-dir", default=str(DEFAULT_OUTPUT_DIR), help="Dossier de sortie.")
@click.option("--no-pdf", is_flag=True, default=False, help="Sans export PDF.")
@data_options
def cmd_invoices(month_ref: Optional[str], output_dir: str, no_pdf: bool,
                 json_path: str, gen_first: bool):
    """Calcule les factures du mois et les exporte (Excel + PDF)."""
    from export.excel_export import ExcelExporter
    from export.helpers import invoice_numbers, money_str
    from export.pdf_export import InvoicePdfExporter
    from rules.invoicing_engine import generate_monthly_invoices

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    month = _parse_month(month_ref)

    invoices = generate_monthly_invoices(
        month,
        data.clients,
        data.activities,
        data.routines,
        tax_rate=config.billing.tax_rate,
        payment_delay_days=config.billing.payment_delay_days,
        apply_package_discount=config.billing.apply_package_discount,
        packages=config.package_map(),
        default_prices=config.pricing.default_prices,
    )
    if not invoices:
        console.print("[yellow]Aucune prestation effectuée pour ce mois.[/yellow]")
        return

    numbers = invoice_numbers(invoices, config.company.invoice_prefix)
    table = Table(title=f"Factures {month:%Y-%m}", box=box.ROUNDED)
    table.add_column("N°", style="bold")
    table.add_column("Client")
    table.add_column("Balades", justify="right")
    table.add_column(f"Total {config.company.currency}", justify="right")
    for number, inv in zip(numbers, invoices):
        table.add_row(number, inv.client_name, str(inv.walk_count), money_str(inv.total))
    console.print(table)

    out = Path(output_dir)
    xlsx_path = out / f"factures_{month:%Y-%m}.xlsx"
    ExcelExporter(invoices, config, numbers).export(xlsx_path)
    console.print(f"[green]✓[/green] Excel: {xlsx_path}")
    if not no_pdf:
        pdf_path = out / f"factures_{month:%Y-%m}.pdf"
        InvoicePdfExporter(invoices, config, numbers).export(pdf_path)
        console.print(f"[green]✓[/green] PDF: {pdf_path}")


# ─── REMINDERS ────────────────────────────────────────────────────────────────

@click.command("reminders")
@click.option("--today", "today_ref", default=None, type=click.DateTime(["%Y-%m-%d"]),
              help="Date de référence (défaut: aujourd'hui).")
@click.option("--show-text", is_flag=True, default=False, help="Afficher les messages.")
@data_options
def cmd_reminders(today_ref: Optional[datetime], show_text: bool,
                  json_path: str, gen_first: bool):
    """Liste les rappels de paiement à envoyer."""
    from export.helpers import money_str
    from models.enums import REMINDER_LEVEL_LABELS
    from rules.invoicing_engine import generate_payment_reminders, select_overdue_invoices

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    today = today_ref.date() if today_ref else date.today()

    reminders = generate_payment_reminders(
        select_overdue_invoices(data.invoices, today),
        reminder_interval_days=config.reminders.interval_days,
        today=today,
        company_name=config.company.name,
        currency=config.company.currency,
    )
    if not reminders:
        console.print("[green]Aucun rappel à envoyer.[/green]")
        return

    table = Table(title="Rappels de paiement", box=box.ROUNDED)
    table.add_column("Facture", style="bold")
    table.add_column("Client")
    table.add_column("Montant", justify="right")
    table.add_column("Retard", justify="right")
    table.add_column("Niveau")
    for r in reminders:
        table.add_row(
            r.invoice_number, r.client_name, money_str(r.amount),
            f"{r.days_past_due} j", REMINDER_LEVEL_LABELS[r.reminder_level],
        )
    console.print(table)

    if show_text:
        for r in reminders:
            console.print(Panel(r.template_message, title=r.client_email or r.client_name))


# ─── REPORT ───────────────────────────────────────────────────────────────────

@click.command("report")
@click.option("--month", "month_ref", default=None, help="Mois AAAA-MM (défaut: mois précédent).")
@click.option("--excel", "excel_path", default=None, help="Export Excel du rapport.")
@data_options
def cmd_report(month_ref: Optional[str], excel_path: Optional[str],
               json_path: str, gen_first: bool):
    """Rapport mensuel: chiffre d'affaires, dépenses, meilleurs clients."""
    from export.excel_export import ExcelExporter
    from export.helpers import money_str
    from rules.dates import format_month_fr, month_bounds
    from rules.invoicing_engine import generate_monthly_report
    from rules.planning_engine import analyze_weekly_load

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    month = _parse_month(month_ref)
    start, end = month_bounds(month)

    report = generate_monthly_report(
        month,
        [i for i in data.invoices if start <= i.issue_date <= end],
        [e for e in data.expenses if start <= e.date <= end],
        [a for a in data.activities if start <= a.date <= end],
        default_prices=config.pricing.default_prices,
    )

    currency = config.company.currency
    console.print(Panel(
        f"Chiffre d'affaires: {money_str(report.total_revenue)} {currency}\n"
        f"Dépenses: {money_str(report.total_expenses)} {currency}\n"
        f"Bénéfice net: {money_str(report.net_profit)} {currency}\n"
        f"Balades: {report.total_walks}  |  Clients actifs: {report.unique_clients}",
        title=f"Rapport {format_month_fr(report.month)}",
        border_style="red" if report.net_profit < 0 else "green",
    ))
    for entry in report.top_clients:
        console.print(f"  {entry.client_name}: {money_str(entry.revenue)} {currency}")

    if excel_path:
        weeks = data.weeks()
        load = None
        if weeks:
            year, week = weeks[-1]
            load = analyze_weekly_load(
                data.slots_for_week(year, week), config.planning.near_capacity_percent
            )
        ExcelExporter([], config).export(Path(excel_path), report=report, weekly_load=load)
        console.print(f"[green]✓[/green] Excel: {excel_path}")


# ─── ESTIMATE ─────────────────────────────────────────────────────────────────

@click.command("estimate")
@data_options
def cmd_estimate(json_path: str, gen_first: bool):
    """Estimation du chiffre d'affaires mensuel à partir des routines."""
    from models.enums import ROUTINE_LABELS, ServiceType
    from rules.invoicing_engine import count_routines, estimate_monthly_revenue
    from rules.money import format_chf

    mgr, config = _load_config_or_abort()
    data = _load_data_or_abort(json_path, gen_first, config)
    estimate = estimate_monthly_revenue(
        count_routines(data.routines),
        packages=config.package_map(),
        collective_price=config.pricing.default_prices[ServiceType.GROUP_WALK],
    )

    currency = config.company.currency
    table = Table(title="Estimation mensuelle", box=box.ROUNDED)
    table.add_column("Routine")
    table.add_column("Chiens", justify="right")
    table.add_column("Revenu", justify="right")
    for item in estimate.breakdown:
        table.add_row(ROUTINE_LABELS[item.routine_type], str(item.count),
                      format_chf(item.revenue, currency))
    table.add_row("[bold]Total[/bold]", "", f"[bold]{format_chf(estimate.estimated, currency)}[/bold]")
    console.print(table)


# ─── SCENARIO ─────────────────────────────────────────────────────────────────

@click.group("scenario")
def cmd_scenario():
    """Gérer les scénarios (enregistrer, charger, lister)."""


@cmd_scenario.command("save")
@click.argument("name")
@click.option("--description", "-d", default="", help="Description du scénario.")
@click.option("--force", is_flag=True, default=False, help="Écraser sans demander.")
def scenario_save(name: str, description: str, force: bool):
    """Enregistre la configuration active comme scénario."""
    mgr, config = _load_config_or_abort()
    if mgr.save_scenario(config, name, description, force=force):
        console.print(f"[green]✓[/green] Scénario '{name}' enregistré.")


@cmd_scenario.command("load")
@click.argument("name")
def scenario_load(name: str):
    """Active un scénario enregistré."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        config = mgr.load_scenario(name)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    mgr.save(config)
    console.print(f"[green]✓[/green] Scénario '{name}' activé.")


@cmd_scenario.command("list")
def scenario_list():
    """Liste les scénarios enregistrés."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    scenarios = mgr.list_scenarios()

    if not scenarios:
        console.print("[dim]Aucun scénario.[/dim]")
        return

    table = Table(title="Scénarios", box=box.ROUNDED)
    table.add_column("Nom", style="bold")
    table.add_column("Enregistré")
    table.add_column("TVA %", justify="right")
    table.add_column("Forfaits")
    table.add_column("Annulation")
    table.add_column("Description")
    for s in scenarios:
        table.add_row(s["name"], s["saved_on"], s["tax_rate"], s["packages"],
                      s["cancellation"], s["description"])
    console.print(table)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Logs détaillés.")
def cli(verbose: bool):
    """Promenade: planning, annulations et facturation pour promeneurs de chiens.

    Commencez par: python main.py setup
    """
    _setup_logging(verbose)


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf ohne Argumente die Config an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Bienvenue dans Promenade ![/bold]\n\n"
            "Aucune configuration trouvée.\n"
            "La configuration par défaut va être créée...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_assign)
cli.add_command(cmd_cancel)
cli.add_command(cmd_absences)
cli.add_command(cmd_invoices)
cli.add_command(cmd_reminders)
cli.add_command(cmd_report)
cli.add_command(cmd_estimate)
cli.add_command(cmd_scenario)


if __name__ == "__main__":
    main()

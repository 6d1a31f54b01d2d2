"""Konfigurationsmanager: Laden, Speichern und Szenarien der Unternehmenskonfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Confirm
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import BusinessConfig

logger = logging.getLogger(__name__)

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Promenade - Configuration de l'entreprise
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "company": (
        "Unternehmen",
        "Erscheint im Rechnungskopf und als Signatur der Mahntexte.",
    ),
    "pricing": (
        "Preise",
        "Standardpreise je Leistungsart (CHF) und Basis der Absagegebühren.",
    ),
    "billing": (
        "Fakturierung",
        None,
    ),
    "packages": (
        "Monatsforfaits",
        "Flat ab 75 % der erwarteten Balades (walks_per_week × 4.33),\n"
        "sonst price_per_walk × Anzahl.",
    ),
    "cancellation": (
        "Absagen",
        "Ganze Stunden vor der Balade: >= full_refund_hours kostenlos,\n"
        ">= partial_charge_hours Teilgebühr, darunter volle Gebühr.",
    ),
    "reminders": (
        "Zahlungserinnerungen",
        None,
    ),
    "planning": (
        "Planung",
        None,
    ),
    "walk_groups": (
        "Gruppen",
        "Wiederkehrende Vorlagen Tag × Block (z.B. LU-B1 = Montag Vormittag).",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "business_config.yaml"
    SCENARIOS_DIR = Path("scenarios")

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> BusinessConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py setup' aus, um die Konfiguration anzulegen."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        if raw is None:
            raise ValueError(f"Konfigurationsdatei leer: {target}")
        try:
            config = BusinessConfig.model_validate(dict(raw))
        except ValidationError as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e
        logger.debug(f"Konfiguration geladen: {target}")
        return config

    # ─── Speichern ───

    def save(self, config: BusinessConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit Abschnitts-Kommentaren."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: BusinessConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        # Inline-Kommentar für den MwSt-Satz
        billing_map = CommentedMap(cm["billing"])
        billing_map.yaml_add_eol_comment("0 = nicht MwSt-pflichtig", "tax_rate")
        cm["billing"] = billing_map

        return cm

    # ─── Szenarios ───
    #
    # Ein Szenario ist eine vollständige Config unter scenarios/<name>.yaml,
    # daneben <name>.meta.yaml mit Beschreibung und den Kennzahlen, nach denen
    # sich Preisvarianten unterscheiden (MwSt, Forfaits, Absageschwellen).

    def _scenario_path(self, name: str) -> Path:
        return self.SCENARIOS_DIR / f"{name}.yaml"

    def _meta_path(self, name: str) -> Path:
        return self.SCENARIOS_DIR / f"{name}.meta.yaml"

    @staticmethod
    def _key_figures(config: BusinessConfig) -> dict:
        packages = ", ".join(
            f"{p.routine_type.value}={p.monthly_price}" for p in config.packages
        )
        c = config.cancellation
        return {
            "tax_rate": str(config.billing.tax_rate),
            "packages": packages,
            "cancellation": f"{c.full_refund_hours}h/{c.partial_charge_hours}h/"
                            f"{c.partial_charge_percent}%",
        }

    def save_scenario(self, config: BusinessConfig, name: str,
                      description: str = "", force: bool = False) -> bool:
        """Speichert die Config als benanntes Szenario samt Kennzahlen.

        Gibt False zurück, wenn der Nutzer das Überschreiben ablehnt.
        """
        target = self._scenario_path(name)
        if target.exists() and not force and not Confirm.ask(
            f"Le scénario '{name}' existe déjà. Écraser ?", default=False
        ):
            console.print("[yellow]Annulé.[/yellow]")
            return False

        self.save(config, target)
        meta = {"description": description, "saved_on": date.today().isoformat()}
        meta.update(self._key_figures(config))
        with open(self._meta_path(name), "w", encoding="utf-8") as f:
            yaml.dump(meta, f)

        logger.info(f"Szenario '{name}' gespeichert ({meta['packages']})")
        return True

    def list_scenarios(self) -> list[dict]:
        """Alle Szenarien, alphabetisch, mit den Feldern der Metadaten-Datei."""
        if not self.SCENARIOS_DIR.is_dir():
            return []
        result = []
        for config_path in sorted(self.SCENARIOS_DIR.glob("*.yaml")):
            name = config_path.stem
            if name.endswith(".meta"):
                continue
            entry = {"name": name, "path": str(config_path), "description": "",
                     "saved_on": "", "tax_rate": "", "packages": "", "cancellation": ""}
            meta_path = self._meta_path(name)
            if meta_path.exists():
                with open(meta_path, "r", encoding="utf-8") as f:
                    entry.update({k: str(v) for k, v in (yaml.load(f) or {}).items()})
            result.append(entry)
        return result

    def load_scenario(self, name: str) -> BusinessConfig:
        """Lädt ein gespeichertes Szenario (FileNotFoundError, falls unbekannt)."""
        target = self._scenario_path(name)
        if not target.exists():
            known = ", ".join(s["name"] for s in self.list_scenarios()) or "keine"
            raise FileNotFoundError(f"Szenario '{name}' unbekannt (vorhanden: {known})")
        return self.load(target)

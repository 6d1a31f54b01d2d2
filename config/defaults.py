from decimal import Decimal

from config.schema import (
    BusinessConfig,
    PricingConfig,
)
from models.billing import MonthlyPackage
from models.planning import WalkGroup
from models.enums import (
    DEFAULT_CAPACITIES,
    TIME_BLOCKS,
    WORK_DAYS,
    GeographicSector,
    TimeBlock,
    ServiceType,
    WalkType,
)
from rules.invoicing_engine import DEFAULT_PACKAGES, DEFAULT_SERVICE_PRICES


def default_prices() -> dict[ServiceType, Decimal]:
    """Standardpreise (CHF) je Leistungsart, wenn eine Aktivität keinen Preis trägt."""
    return dict(DEFAULT_SERVICE_PRICES)


def default_packages() -> list[MonthlyPackage]:
    """Monatsforfaits, kalkuliert mit 4.33 Wochen/Monat.

    R1            1×/Woche   115 CHF   (26.50 pro Balade)
    R2            2×/Woche   220 CHF   (25.40 pro Balade)
    R3            3×/Woche   315 CHF   (24.20 pro Balade)
    ROUTINE_PLUS  4×/Woche   400 CHF   (23.50 pro Balade)

    PONCTUEL hat keinen Forfait und wird pro Balade abgerechnet.
    """
    return [p.model_copy() for p in DEFAULT_PACKAGES.values()]


# Sektor je Block: vormittags Nyon, mittags Lac, nachmittags Jura
_BLOCK_SECTORS = {
    TimeBlock.B1: GeographicSector.S1,
    TimeBlock.B2: GeographicSector.S2,
    TimeBlock.B3: GeographicSector.S3,
}


def default_walk_groups() -> list[WalkGroup]:
    """15 Gruppen-Vorlagen: 5 Tage × 3 Blöcke, alle kollektiv mit 4 Plätzen."""
    return [
        WalkGroup(
            id=f"{day.code}-{block.value}",
            day=day,
            block=block,
            default_capacity=DEFAULT_CAPACITIES[WalkType.COLLECTIVE],
            default_sector=_BLOCK_SECTORS[block],
            walk_type=WalkType.COLLECTIVE,
        )
        for day in WORK_DAYS
        for block in TIME_BLOCKS
    ]


def default_business_config() -> BusinessConfig:
    """Komplette Default-Konfiguration (Preise, Forfaits, Gruppen)."""
    return BusinessConfig(
        pricing=PricingConfig(default_prices=default_prices()),
        packages=default_packages(),
        walk_groups=default_walk_groups(),
    )

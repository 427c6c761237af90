"""Performance budget presets.

Each preset is a ready-made ``BudgetConfig`` for a common deployment target.
An adopter picks a preset by name and evaluates a session against it.
"""

from perfscope.errors import UnknownBudgetPresetError
from perfscope.models import BudgetConfig, BudgetPreset

MOBILE_FAST = BudgetPreset(
    name="mobile-fast",
    description="Aggressive targets for pages served to mobile devices on cellular networks",
    budget=BudgetConfig(
        max_load_time=2.0,
        max_total_size=1_572_864,  # 1.5 MiB
        max_requests=30,
        min_score=85,
        max_lcp=2000,
        max_cls=0.05,
        max_fid=80,
    ),
)

DESKTOP_STANDARD = BudgetPreset(
    name="desktop-standard",
    description="Balanced targets for typical desktop sites on broadband",
    budget=BudgetConfig(
        max_load_time=3.0,
        max_total_size=3_145_728,  # 3 MiB
        max_requests=50,
        min_score=75,
        max_lcp=2500,
        max_cls=0.1,
        max_fid=100,
    ),
)

PWA = BudgetPreset(
    name="pwa",
    description="Strict app-shell targets for progressive web apps",
    budget=BudgetConfig(
        max_load_time=1.5,
        max_total_size=1_048_576,  # 1 MiB
        max_requests=25,
        min_score=90,
        max_lcp=1800,
        max_cls=0.05,
        max_fid=50,
    ),
)

BUDGET_PRESETS: dict[str, BudgetPreset] = {
    MOBILE_FAST.name: MOBILE_FAST,
    DESKTOP_STANDARD.name: DESKTOP_STANDARD,
    PWA.name: PWA,
}


def get_preset(name: str) -> BudgetPreset | None:
    """Look up a budget preset by name."""
    return BUDGET_PRESETS.get(name)


def list_preset_names() -> list[str]:
    """Return all available preset names."""
    return list(BUDGET_PRESETS.keys())


def require_preset(name: str) -> BudgetPreset:
    preset = get_preset(name)
    if preset is None:
        raise UnknownBudgetPresetError(name, list_preset_names())
    return preset

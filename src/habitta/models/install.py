"""Install-year plausibility checks shared by records, sync, and survival."""
from __future__ import annotations

from datetime import UTC, datetime

# Nothing installed before this is tracked as a maintained system
EARLIEST_INSTALL_YEAR = 1900


def is_plausible_install_year(
    year: int, year_built: int | None = None, *, current_year: int | None = None
) -> bool:
    """Whether ``year`` could be a real installation year.

    Rejects years in the future, before 1900, and before the home was built
    (when the build year is known).
    """
    if year > (current_year or datetime.now(UTC).year):
        return False
    if year < EARLIEST_INSTALL_YEAR:
        return False
    if year_built and year < year_built:
        return False
    return True


def check_install_year(year: int | None) -> int | None:
    """Validator body for install-year fields on stored models."""
    if year is not None and not is_plausible_install_year(year):
        raise ValueError(f"Implausible install year: {year}")
    return year

"""Authority hierarchy for system evidence sources."""
from __future__ import annotations

from enum import Enum

from ..exceptions import UnknownAuthoritySourceError


class AuthoritySource(str, Enum):
    """Origin of a system-grade update."""

    PROFESSIONAL_OVERRIDE = "professional_override"  # Licensed pro corrected the record
    USER_CONFIRMED = "user_confirmed"  # Homeowner explicitly confirmed
    PHOTO_ANALYSIS = "photo_analysis"  # Data plate / label read from a photo
    PERMIT_RECORD = "permit_record"  # Municipal permit ingestion
    INFERRED = "inferred"  # Heuristic from home age, region, etc.


# Total order; higher rank wins
AUTHORITY_RANK: dict[AuthoritySource, int] = {
    AuthoritySource.PROFESSIONAL_OVERRIDE: 5,
    AuthoritySource.USER_CONFIRMED: 4,
    AuthoritySource.PHOTO_ANALYSIS: 3,
    AuthoritySource.PERMIT_RECORD: 2,
    AuthoritySource.INFERRED: 1,
}


def parse_authority_source(source: AuthoritySource | str) -> AuthoritySource:
    """Coerce a raw value into an AuthoritySource or fail loudly."""
    if isinstance(source, AuthoritySource):
        return source
    try:
        return AuthoritySource(source)
    except ValueError:
        raise UnknownAuthoritySourceError(source) from None


def authority_rank(source: AuthoritySource | str) -> int:
    """Return the authority rank of a source.

    Raises:
        UnknownAuthoritySourceError: if the source is not in the hierarchy.
    """
    return AUTHORITY_RANK[parse_authority_source(source)]


class InstallSource(str, Enum):
    """How the install year on a canonical record was established."""

    PERMIT = "permit"
    INSPECTION = "inspection"
    USER = "user"
    INFERRED = "inferred"

    @classmethod
    def _missing_(cls, value: object) -> InstallSource | None:
        # Legacy storage vocabulary
        aliases = {
            "permit_verified": cls.PERMIT,
            "owner_reported": cls.USER,
            "heuristic": cls.INFERRED,
        }
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


INSTALL_SOURCE_RANK: dict[InstallSource, int] = {
    InstallSource.PERMIT: 4,
    InstallSource.INSPECTION: 3,
    InstallSource.USER: 2,
    InstallSource.INFERRED: 1,
}


_INSTALL_SOURCE_BY_AUTHORITY: dict[AuthoritySource, InstallSource] = {
    AuthoritySource.PHOTO_ANALYSIS: InstallSource.USER,  # photos are owner-provided evidence
    AuthoritySource.USER_CONFIRMED: InstallSource.USER,
    AuthoritySource.PERMIT_RECORD: InstallSource.PERMIT,
    AuthoritySource.PROFESSIONAL_OVERRIDE: InstallSource.INSPECTION,
    AuthoritySource.INFERRED: InstallSource.INFERRED,
}


def map_to_install_source(source: AuthoritySource | str) -> InstallSource:
    """Map an update source onto the canonical install-source vocabulary."""
    return _INSTALL_SOURCE_BY_AUTHORITY[parse_authority_source(source)]


def can_overwrite_install_source(
    existing: InstallSource | None, incoming: InstallSource
) -> bool:
    """Same-or-higher authority may update a canonical record."""
    existing_rank = INSTALL_SOURCE_RANK[existing] if existing is not None else 0
    return INSTALL_SOURCE_RANK[incoming] >= existing_rank

"""Operator-managed catalog of ticket packages."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .errors import NotFound
from .models import Package

logger = logging.getLogger(__name__)


def _require_non_negative(combinations: int, price: int) -> None:
    if combinations < 0:
        raise ValueError("combinations must be non-negative")
    if price < 0:
        raise ValueError("price must be non-negative")


def _active_or_not_found(session: Session, package_id: int) -> Package:
    package = Package.get_active(session, package_id)
    if package is None:
        raise NotFound(f"Package {package_id} does not exist or is inactive")
    return package


def add_package(session: Session, combinations: int, price: int) -> Package:
    """Create a new active package with the next id.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    combinations : int
        Number of tickets in the bundle.
    price : int
        Price of the bundle in token units.

    Returns
    -------
    Package
        The persisted package with its ``id`` populated.
    """

    _require_non_negative(combinations, price)
    package = Package(combinations=combinations, price=price, active=True)
    session.add(package)
    session.flush()
    logger.info(
        "Added package %d (combinations=%d, price=%d)", package.id, combinations, price
    )
    return package


def update_package(
    session: Session, package_id: int, combinations: int, price: int
) -> Package:
    """Overwrite combinations and price of an active package.

    Raises
    ------
    NotFound
        If ``package_id`` is invalid or the package was removed.
    """

    _require_non_negative(combinations, price)
    package = _active_or_not_found(session, package_id)
    package.combinations = combinations
    package.price = price
    session.flush()
    logger.info(
        "Updated package %d (combinations=%d, price=%d)", package_id, combinations, price
    )
    return package


def remove_package(session: Session, package_id: int) -> Package:
    """Deactivate a package. Its id is never reused nor reactivated.

    Raises
    ------
    NotFound
        If ``package_id`` is invalid or the package was already removed.
    """

    package = _active_or_not_found(session, package_id)
    package.combinations = 0
    package.price = 0
    package.active = False
    session.flush()
    logger.info("Removed package %d", package_id)
    return package


def get_package(session: Session, package_id: int) -> Package:
    """Return the stored package, active or not.

    Raises
    ------
    NotFound
        If ``package_id`` is outside ``1..package_count``.
    """

    package = session.get(Package, package_id) if package_id >= 1 else None
    if package is None:
        raise NotFound(f"Package {package_id} does not exist")
    return package


def get_all_active_packages(session: Session) -> list[tuple[int, Package]]:
    """Return ``(id, package)`` pairs for every active package, by ascending id."""

    return [(package.id, package) for package in Package.all_active(session)]


def package_count(session: Session) -> int:
    return Package.count(session)


__all__ = [
    "add_package",
    "get_all_active_packages",
    "get_package",
    "package_count",
    "remove_package",
    "update_package",
]

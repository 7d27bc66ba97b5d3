from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from truss_solver_backend.schemas.hoist import HoistAssignment, HoistType

logger = logging.getLogger(__name__)


def pick_hoist(required_kg: int, catalog_by_wll: Sequence[HoistType]) -> Optional[HoistType]:
    """Smallest adequate hoist, else the largest one available."""
    for hoist in catalog_by_wll:
        if hoist.wll_kg >= required_kg:
            return hoist
    return catalog_by_wll[-1] if catalog_by_wll else None


def suggest_hoists(
    reactions_kg: Sequence[float],
    catalog: Sequence[HoistType],
    labels: Optional[Sequence[str]] = None,
) -> List[HoistAssignment]:
    """Match each support reaction to the cheapest catalog hoist that carries it.

    Never raises: when nothing in the catalog is strong enough the largest hoist is
    returned with ``under_capacity`` set.
    """
    catalog_by_wll = sorted(catalog, key=lambda hoist: hoist.wll_kg)
    assignments: List[HoistAssignment] = []

    for index, reaction in enumerate(reactions_kg):
        support = labels[index] if labels is not None else f"H{index + 1}"
        required_kg = math.ceil(reaction)
        hoist = pick_hoist(required_kg, catalog_by_wll)
        under_capacity = hoist is None or required_kg > hoist.wll_kg
        if under_capacity:
            logger.warning("No hoist in catalog carries %d kg at %s", required_kg, support)
        assignments.append(
            HoistAssignment(
                support=support,
                required_kg=required_kg,
                hoist=hoist,
                under_capacity=under_capacity,
            )
        )

    return assignments

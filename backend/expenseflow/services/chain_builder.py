# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from expenseflow.exceptions import NoApproverAvailableError

if TYPE_CHECKING:
    from expenseflow.services.directory import Directory

logger = logging.getLogger(__name__)


async def build_approval_chain(
    directory: Directory,
    company_id: uuid.UUID,
    submitter_id: uuid.UUID,
    levels: int,
) -> list[uuid.UUID]:
    """Derive one approver per level by climbing the submitter's reporting line.

    Level 1 is the submitter's manager, level 2 that manager's manager, and so
    on. Once the line runs out (no manager, or a manager already visited on
    this walk) every remaining level goes to the company's active admin.

    Raises NoApproverAvailableError if the admin fallback is needed and the
    company has no active admin. The returned list always has ``levels``
    entries.
    """
    if levels < 1:
        msg = f"levels must be positive, got {levels}"
        raise ValueError(msg)

    chain: list[uuid.UUID] = []
    visited = {submitter_id}
    current = await directory.get_manager(company_id, submitter_id)
    admin_id: uuid.UUID | None = None

    # Bounded by ``levels`` so corrupt hierarchy data cannot cause an unbounded walk.
    for level in range(1, levels + 1):
        if current is not None and current in visited:
            logger.warning(
                "Manager cycle in company %s at user %s while routing for %s; falling back to admin",
                company_id,
                current,
                submitter_id,
            )
            current = None

        if current is not None:
            chain.append(current)
            visited.add(current)
            if level < levels:
                current = await directory.get_manager(company_id, current)
            continue

        if admin_id is None:
            admin_id = await directory.find_active_admin(company_id)
            if admin_id is None:
                raise NoApproverAvailableError(f"Cannot find approver for level {level}")
        chain.append(admin_id)

    return chain

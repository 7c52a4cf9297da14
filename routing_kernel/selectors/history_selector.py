"""
Module: routing_kernel.selectors.history_selector
Responsibility: SQLAlchemy-backed implementation of the ``HistoryStore``
    protocol over ``approval_history``.

Decisions are returned ordered by step order, then ``decided_at``.
"""

from __future__ import annotations

from sqlalchemy import select

from routing_kernel.domain.route import Decision
from routing_kernel.exceptions import MalformedDataError
from routing_kernel.models.history import ApprovalHistoryModel
from routing_kernel.selectors.base import BaseSelector


class SqlHistoryStore(BaseSelector):
    """History store backed by the append-only ``approval_history`` table."""

    collaborator_name = "history_store"

    async def get_approval_history(self, request_id: str) -> list[Decision]:
        stmt = (
            select(ApprovalHistoryModel)
            .where(ApprovalHistoryModel.request_id == request_id)
            .order_by(
                ApprovalHistoryModel.step_order.asc(),
                ApprovalHistoryModel.decided_at.asc(),
            )
        )
        rows = await self._scalars("get_approval_history", stmt)

        decisions: list[Decision] = []
        for row in rows:
            try:
                decisions.append(row.to_dto())
            except ValueError as exc:
                raise MalformedDataError(
                    self.collaborator_name, "Decision", str(row.id), str(exc),
                ) from exc
        return decisions

"""
Tests for the SQLAlchemy-backed Directory and History Store.

Covers:
- Schema creation from the ORM models
- Holder ordering (primary, earliest valid_from, user_id) and de-duplication
- Role scope and validity filtering
- Append-only approval history
- Driver faults wrapped as CollaboratorUnavailableError
- End-to-end resolution over the SQL adapters, including concurrent
  resolutions on separate async sessions

Rows are written through a synchronous Session (the writer path) and read
through an AsyncSession over the same SQLite file.
"""

import asyncio
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from routing_kernel.db.base import Base
from routing_kernel.domain.route import (
    ApprovalRoleAssignment,
    Decision,
    DecisionAction,
    OrganizationUnit,
    Position,
    PositionAssignment,
    RequestSnapshot,
    ResolutionContext,
    SkipReason,
    StepStatus,
    User,
)
from routing_kernel.exceptions import (
    CollaboratorUnavailableError,
    ImmutableHistoryError,
    MalformedDataError,
)
from routing_kernel.models import (
    ApprovalHistoryModel,
    ApprovalRoleAssignmentModel,
    OrganizationModel,
    PositionAssignmentModel,
    PositionModel,
    UserModel,
)
from routing_kernel.selectors import SqlDirectory, SqlHistoryStore
from routing_kernel.services.route_resolver import RouteResolver
from tests.conftest import AS_OF, make_step

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "routing.sqlite"


@pytest.fixture
def engine(db_path):
    eng = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def async_engine(engine, db_path):
    """Async reader over the same file; NullPool leaves nothing to dispose."""
    return create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def seeded(session):
    """Sales tree with two managers in org-sales and a global accounting role."""
    session.add_all([
        OrganizationModel.from_dto(OrganizationUnit(id="org-company")),
        OrganizationModel.from_dto(OrganizationUnit(id="org-sales", parent_id="org-company")),
        OrganizationModel.from_dto(OrganizationUnit(id="org-sales-1", parent_id="org-sales")),
        PositionModel.from_dto(Position(id="pos-manager", name="Manager", level=4)),
        UserModel.from_dto(User(id="u-a", name="A")),
        UserModel.from_dto(User(id="u-b", name="B")),
        UserModel.from_dto(User(id="u-c", name="C")),
        UserModel.from_dto(User(id="u-applicant", name="Applicant")),
        # u-a: older but not primary; u-b: primary; u-c: primary, newer
        PositionAssignmentModel.from_dto(PositionAssignment(
            "u-a", "org-sales", "pos-manager", date(2020, 1, 1),
        )),
        PositionAssignmentModel.from_dto(PositionAssignment(
            "u-c", "org-sales", "pos-manager", date(2024, 1, 1), is_primary=True,
        )),
        PositionAssignmentModel.from_dto(PositionAssignment(
            "u-b", "org-sales", "pos-manager", date(2022, 1, 1), is_primary=True,
        )),
        # duplicate assignment for u-b
        PositionAssignmentModel.from_dto(PositionAssignment(
            "u-b", "org-sales", "pos-manager", date(2023, 1, 1),
        )),
        ApprovalRoleAssignmentModel.from_dto(ApprovalRoleAssignment(
            "u-c", "role-accounting", date(2024, 1, 1),
        )),
        ApprovalRoleAssignmentModel.from_dto(ApprovalRoleAssignment(
            "u-a", "role-accounting", date(2024, 1, 1), date(2024, 12, 31),
        )),
        ApprovalRoleAssignmentModel.from_dto(ApprovalRoleAssignment(
            "u-b", "role-accounting", date(2024, 1, 1),
            target_organization_id="org-sales-1",
        )),
    ])
    session.commit()
    return session


def record(session, decision: Decision) -> ApprovalHistoryModel:
    row = ApprovalHistoryModel.from_dto(decision)
    session.add(row)
    session.commit()
    return row


# =============================================================================
# Directory
# =============================================================================


class TestSqlDirectory:
    def test_schema_created(self, engine):
        assert {
            "organization_units",
            "positions",
            "users",
            "position_assignments",
            "approval_role_assignments",
            "approval_history",
        } <= set(Base.metadata.tables)

    @pytest.mark.asyncio
    async def test_holder_ordering_and_dedupe(self, seeded, async_engine):
        async with AsyncSession(async_engine) as reader:
            holders = await SqlDirectory(reader).get_users_by_organization_and_position(
                "org-sales", "pos-manager", AS_OF,
            )
        assert [u.id for u in holders] == ["u-b", "u-c", "u-a"]

    @pytest.mark.asyncio
    async def test_validity_window(self, seeded, async_engine):
        async with AsyncSession(async_engine) as reader:
            holders = await SqlDirectory(reader).get_users_by_organization_and_position(
                "org-sales", "pos-manager", date(2021, 6, 1),
            )
        assert [u.id for u in holders] == ["u-a"]

    @pytest.mark.asyncio
    async def test_role_scope(self, seeded, async_engine):
        async with AsyncSession(async_engine) as reader:
            directory = SqlDirectory(reader)
            scoped = await directory.get_users_by_approval_role(
                "role-accounting", "org-sales-1", AS_OF,
            )
            global_holders = await directory.get_users_by_approval_role(
                "role-accounting", None, AS_OF,
            )
        assert [u.id for u in scoped] == ["u-b"]
        assert [u.id for u in global_holders] == ["u-c"]

    @pytest.mark.asyncio
    async def test_entity_lookups(self, seeded, async_engine):
        async with AsyncSession(async_engine) as reader:
            directory = SqlDirectory(reader)
            assert await directory.get_user("u-a") == User(id="u-a", name="A")
            assert await directory.get_user("u-missing") is None
            assert (await directory.get_organization("org-sales")).parent_id == "org-company"
            assert await directory.get_organization("org-missing") is None
            assert (await directory.get_position("pos-manager")).level == 4
            assert await directory.get_position("pos-missing") is None

    @pytest.mark.asyncio
    async def test_self_parented_unit_is_malformed(self, session, async_engine):
        session.add(OrganizationModel(unit_id="org-loop", parent_unit_id="org-loop"))
        session.commit()

        async with AsyncSession(async_engine) as reader:
            with pytest.raises(MalformedDataError) as exc_info:
                await SqlDirectory(reader).get_organization("org-loop")
        assert exc_info.value.entity_id == "org-loop"

    @pytest.mark.asyncio
    async def test_driver_fault_wrapped(self, tmp_path):
        bare = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'empty.sqlite'}", poolclass=NullPool,
        )
        async with AsyncSession(bare) as reader:
            with pytest.raises(CollaboratorUnavailableError) as exc_info:
                await SqlDirectory(reader).get_user("u-a")
        assert exc_info.value.collaborator == "directory"
        assert exc_info.value.operation == "get_user"


# =============================================================================
# History
# =============================================================================


class TestSqlHistoryStore:
    @pytest.mark.asyncio
    async def test_round_trip_ordered(self, session, async_engine):
        record(session, Decision(
            request_id="req-1", step_order=2, action=DecisionAction.SKIP,
            skip_reason=SkipReason.SAME_PERSON,
            decided_at=datetime(2025, 4, 2, tzinfo=timezone.utc),
        ))
        record(session, Decision(
            request_id="req-1", step_order=1, action=DecisionAction.APPROVE,
            approver_id="u-a", approver_name="A", approver_email="a@example.com",
            comment="fine", decided_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
        ))
        record(session, Decision(
            request_id="req-2", step_order=1, action=DecisionAction.REJECT,
            decided_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
        ))

        async with AsyncSession(async_engine) as reader:
            decisions = await SqlHistoryStore(reader).get_approval_history("req-1")

        assert [d.step_order for d in decisions] == [1, 2]
        assert decisions[0].action == DecisionAction.APPROVE
        assert decisions[0].approver_name == "A"
        assert decisions[0].comment == "fine"
        assert decisions[1].skip_reason == SkipReason.SAME_PERSON

    def test_update_rejected(self, session):
        row = record(session, Decision(
            request_id="req-1", step_order=1, action=DecisionAction.APPROVE,
            decided_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
        ))
        row.comment = "edited"
        with pytest.raises(ImmutableHistoryError) as exc_info:
            session.flush()
        assert exc_info.value.operation == "update"
        session.rollback()

    def test_delete_rejected(self, session):
        row = record(session, Decision(
            request_id="req-1", step_order=1, action=DecisionAction.APPROVE,
            decided_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
        ))
        session.delete(row)
        with pytest.raises(ImmutableHistoryError) as exc_info:
            session.flush()
        assert exc_info.value.code == "IMMUTABLE_HISTORY"
        session.rollback()

    @pytest.mark.asyncio
    async def test_driver_fault_wrapped(self, tmp_path):
        bare = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'empty.sqlite'}", poolclass=NullPool,
        )
        async with AsyncSession(bare) as reader:
            with pytest.raises(CollaboratorUnavailableError) as exc_info:
                await SqlHistoryStore(reader).get_approval_history("req-1")
        assert exc_info.value.collaborator == "history_store"


# =============================================================================
# End to end
# =============================================================================


def two_manager_steps(request_id: str, current_step: int) -> ResolutionContext:
    return ResolutionContext(
        request=RequestSnapshot(request_id=request_id, current_step=current_step),
        applicant=User(id="u-applicant", name="Applicant"),
        applicant_organization_id="org-sales-1",
        steps=(
            make_step(1, reference_id="pos-manager"),
            make_step(2, reference_id="pos-manager"),
        ),
        as_of=AS_OF,
    )


async def resolve_on_own_session(async_engine, context: ResolutionContext):
    async with AsyncSession(async_engine) as reader:
        resolver = RouteResolver(SqlDirectory(reader), SqlHistoryStore(reader))
        return await resolver.resolve_route(context)


class TestResolutionOverSql:
    @pytest.mark.asyncio
    async def test_resolves_with_sql_adapters(self, seeded, async_engine):
        record(seeded, Decision(
            request_id="req-1", step_order=1, action=DecisionAction.APPROVE,
            approver_id="u-b", approver_name="B",
            decided_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
        ))

        route = await resolve_on_own_session(async_engine, two_manager_steps("req-1", 2))

        assert route[0].status == StepStatus.APPROVED
        assert route[1].status == StepStatus.SKIPPED
        assert route[1].skip_reason == SkipReason.SAME_PERSON
        assert route[1].approver.id == "u-b"

    @pytest.mark.asyncio
    async def test_concurrent_resolutions_for_different_requests(self, seeded, async_engine):
        record(seeded, Decision(
            request_id="req-1", step_order=1, action=DecisionAction.APPROVE,
            approver_id="u-b", approver_name="B",
            decided_at=datetime(2025, 4, 1, tzinfo=timezone.utc),
        ))

        approved, fresh = await asyncio.gather(
            resolve_on_own_session(async_engine, two_manager_steps("req-1", 2)),
            resolve_on_own_session(async_engine, two_manager_steps("req-2", 1)),
        )

        assert [s.status for s in approved] == [StepStatus.APPROVED, StepStatus.SKIPPED]
        assert [s.status for s in fresh] == [StepStatus.PENDING, StepStatus.WAITING]
        assert fresh[0].approver.id == "u-b"

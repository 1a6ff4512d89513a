"""
Dispatch Board (Domain Logic).

created -> assigned_to_lh once a lease hauler takes trucks on the dispatch.
The trucks committed across all assignments never exceed the dispatch's
requested quantity.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from haulage.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from haulage.app.models.company import Company
from haulage.app.models.dispatch import Dispatch, CompanyDispatchAssignment
from haulage.app.models.dispatch_enums import DispatchStatus
from haulage.app.models.job import Job

logger = logging.getLogger("haulage.dispatch")

CLOSED_STATUSES = (DispatchStatus.COMPLETED, DispatchStatus.CANCELLED)


class DispatchBoard:

    @staticmethod
    async def get(db: AsyncSession, dispatch_id: int) -> Dispatch:
        dispatch = await db.get(Dispatch, dispatch_id)
        if not dispatch:
            raise NotFoundError("Dispatch", dispatch_id)
        return dispatch

    @staticmethod
    async def list_lease_haulers(db: AsyncSession) -> List[Company]:
        result = await db.execute(
            select(Company).where(Company.is_lease_hauler == True).order_by(Company.name)  # noqa: E712
        )
        return list(result.scalars().all())

    @staticmethod
    async def _lease_hauler(db: AsyncSession, company_id: int) -> Company:
        company = await db.get(Company, company_id)
        if not company:
            raise NotFoundError("Company", company_id)
        if not company.is_lease_hauler:
            raise ValidationError(
                f"{company.name} is not a lease hauler",
                details={"company_id": company_id}
            )
        return company

    @staticmethod
    def _check_capacity(requested: int, already_assigned: int, adding: int, dispatch_id=None) -> None:
        if already_assigned + adding > requested:
            raise ValidationError(
                "Assigned trucks exceed the dispatch quantity",
                details={
                    "dispatch_id": dispatch_id,
                    "quantity": requested,
                    "assigned": already_assigned,
                    "requested_assignment": adding,
                }
            )

    @staticmethod
    async def create(
        db: AsyncSession,
        broker_id: int,
        fields: dict,
        assignments: Iterable[dict] = (),
    ) -> Dispatch:
        """
        Create a dispatch, optionally splitting it across lease haulers.

        `fields` holds the dispatch columns; `assignments` holds
        `{"company_id", "quantity"}` pairs. With any assignment the dispatch
        starts as assigned_to_lh.

        Raises:
            NotFoundError: Unknown job or company.
            ValidationError: A company is not a lease hauler, or the
                assignments exceed the requested quantity.
        """
        assignments = list(assignments)

        job_id = fields.get("job_id")
        if job_id is not None and await db.get(Job, job_id) is None:
            raise NotFoundError("Job", job_id)

        for assignment in assignments:
            await DispatchBoard._lease_hauler(db, assignment["company_id"])
        DispatchBoard._check_capacity(
            fields["quantity"], 0, sum(a["quantity"] for a in assignments)
        )

        dispatch = Dispatch(
            broker_id=broker_id,
            status=DispatchStatus.ASSIGNED_TO_LH if assignments else DispatchStatus.CREATED,
            **fields
        )
        db.add(dispatch)
        await db.flush()

        created = [
            CompanyDispatchAssignment(
                dispatch_id=dispatch.id,
                company_id=assignment["company_id"],
                quantity=assignment["quantity"],
                assigned_by=broker_id,
            )
            for assignment in assignments
        ]
        db.add_all(created)

        await db.commit()
        await db.refresh(dispatch)
        for assignment in created:
            await db.refresh(assignment)

        logger.info(
            "Dispatch created",
            extra={
                "dispatch_id": dispatch.id,
                "broker_id": broker_id,
                "quantity": dispatch.quantity,
                "assignments": len(assignments),
            }
        )
        return dispatch

    @staticmethod
    async def list_for_broker(db: AsyncSession, broker_id: Optional[int] = None) -> List[Dispatch]:
        """Dispatches newest date first; all brokers' when `broker_id` is None."""
        query = select(Dispatch).order_by(Dispatch.date.desc(), Dispatch.id.desc())
        if broker_id is not None:
            query = query.where(Dispatch.broker_id == broker_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def assignments_for(
        db: AsyncSession, dispatch_ids: Iterable[int]
    ) -> Dict[int, List[CompanyDispatchAssignment]]:
        ids = list(dispatch_ids)
        grouped: Dict[int, List[CompanyDispatchAssignment]] = {i: [] for i in ids}
        if not ids:
            return grouped

        result = await db.execute(
            select(CompanyDispatchAssignment).where(
                CompanyDispatchAssignment.dispatch_id.in_(ids)
            ).order_by(CompanyDispatchAssignment.id)
        )
        for assignment in result.scalars().all():
            grouped[assignment.dispatch_id].append(assignment)
        return grouped

    @staticmethod
    async def assign(
        db: AsyncSession,
        dispatch_id: int,
        company_id: int,
        quantity: int,
        assigned_by: int,
    ) -> CompanyDispatchAssignment:
        """
        Give `quantity` of the dispatch's trucks to a lease-hauler company.

        Raises:
            NotFoundError: Unknown dispatch or company.
            ConflictError: The dispatch is completed or cancelled.
            ValidationError: Non-positive quantity, the company is not a
                lease hauler, or the dispatch has no trucks left to assign.
        """
        if quantity < 1:
            raise ValidationError(
                "quantity must be a positive integer",
                details={"quantity": quantity}
            )

        dispatch = await DispatchBoard.get(db, dispatch_id)
        if dispatch.status in CLOSED_STATUSES:
            raise ConflictError(
                f"Cannot assign a {dispatch.status.value} dispatch",
                details={"dispatch_id": dispatch.id}
            )

        await DispatchBoard._lease_hauler(db, company_id)

        existing = (await DispatchBoard.assignments_for(db, [dispatch.id]))[dispatch.id]
        DispatchBoard._check_capacity(
            dispatch.quantity, sum(a.quantity for a in existing), quantity, dispatch.id
        )

        assignment = CompanyDispatchAssignment(
            dispatch_id=dispatch.id,
            company_id=company_id,
            quantity=quantity,
            assigned_by=assigned_by,
        )
        db.add(assignment)

        if dispatch.status == DispatchStatus.CREATED:
            dispatch.status = DispatchStatus.ASSIGNED_TO_LH

        await db.commit()
        await db.refresh(assignment)

        logger.info(
            "Dispatch assigned to lease hauler",
            extra={
                "dispatch_id": dispatch.id,
                "company_id": company_id,
                "quantity": quantity,
                "status": dispatch.status.value,
            }
        )
        return assignment


def unassigned_trucks(dispatch: Dispatch, assignments: Iterable[CompanyDispatchAssignment]) -> int:
    return max(dispatch.quantity - sum(a.quantity for a in assignments), 0)

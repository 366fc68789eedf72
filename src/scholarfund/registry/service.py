"""Registry service — clients and treatment centers."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scholarfund.audit.models import AuditAction
from scholarfund.common.config import ScholarFundSettings
from scholarfund.common.exceptions import NotFoundError
from scholarfund.common.security import Principal
from scholarfund.common.validators import optional_text, require_text
from scholarfund.registry.models import ClientModel, TreatmentCenterModel
from scholarfund.scholarships.models import ScholarshipModel


class RegistryService:
    """Beneficiary and provider records read by the scholarship workflow."""

    def __init__(self, settings: ScholarFundSettings, audit_service=None):
        self.settings = settings
        self.audit_service = audit_service

    # ── Clients ──

    async def create_client(
        self,
        session: AsyncSession,
        principal: Principal,
        client_ref_1: str,
        client_ref_2: str | None = None,
        client_ref_3: str | None = None,
        notes: str | None = None,
    ) -> ClientModel:
        client = ClientModel(
            client_ref_1=require_text(client_ref_1, "client_ref_1"),
            client_ref_2=optional_text(client_ref_2),
            client_ref_3=optional_text(client_ref_3),
            notes=optional_text(notes),
            created_by=principal.id,
        )
        session.add(client)
        await session.flush()

        if self.audit_service:
            await self.audit_service.record(
                session, principal.id, AuditAction.CREATE, "client", client.id,
                {"action": "Client added", "reference_codes": client.reference_codes},
            )
        return client

    async def get_client(
        self, session: AsyncSession, client_id: str
    ) -> ClientModel | None:
        return await session.get(ClientModel, client_id)

    async def get_active_client(
        self, session: AsyncSession, client_id: str
    ) -> ClientModel | None:
        client = await self.get_client(session, client_id)
        if client is None or not client.is_active:
            return None
        return client

    async def list_clients(
        self, session: AsyncSession, include_inactive: bool = False,
    ) -> list[tuple[ClientModel, int]]:
        """Clients newest first, each paired with its scholarship count."""
        query = (
            select(ClientModel, func.count(ScholarshipModel.id))
            .outerjoin(ScholarshipModel, ScholarshipModel.client_id == ClientModel.id)
            .group_by(ClientModel.id)
            .order_by(ClientModel.created_at.desc())
        )
        if not include_inactive:
            query = query.where(ClientModel.is_active.is_(True))
        result = await session.execute(query)
        return [(client, count) for client, count in result.all()]

    async def deactivate_client(
        self, session: AsyncSession, principal: Principal, client_id: str,
    ) -> ClientModel:
        client = await self.get_client(session, client_id)
        if client is None:
            raise NotFoundError("Client not found")
        if client.is_active:
            client.is_active = False
            await session.flush()
            if self.audit_service:
                await self.audit_service.record(
                    session, principal.id, AuditAction.DEACTIVATE, "client", client.id,
                    {"action": "Client deactivated"},
                )
        return client

    # ── Treatment centers ──

    async def create_center(
        self,
        session: AsyncSession,
        principal: Principal,
        name: str,
        city: str = "",
        state: str = "",
    ) -> TreatmentCenterModel:
        center = TreatmentCenterModel(
            name=require_text(name, "name"),
            city=(city or "").strip(),
            state=(state or "").strip(),
        )
        session.add(center)
        await session.flush()

        if self.audit_service:
            await self.audit_service.record(
                session, principal.id, AuditAction.CREATE, "treatment_center", center.id,
                {"action": "Treatment center added", "name": center.name},
            )
        return center

    async def get_center(
        self, session: AsyncSession, center_id: str
    ) -> TreatmentCenterModel | None:
        return await session.get(TreatmentCenterModel, center_id)

    async def get_active_center(
        self, session: AsyncSession, center_id: str
    ) -> TreatmentCenterModel | None:
        center = await self.get_center(session, center_id)
        if center is None or not center.is_active:
            return None
        return center

    async def list_centers(
        self, session: AsyncSession, active_only: bool = True,
    ) -> list[TreatmentCenterModel]:
        query = select(TreatmentCenterModel).order_by(TreatmentCenterModel.name)
        if active_only:
            query = query.where(TreatmentCenterModel.is_active.is_(True))
        result = await session.execute(query)
        return list(result.scalars().all())

    async def deactivate_center(
        self, session: AsyncSession, principal: Principal, center_id: str,
    ) -> TreatmentCenterModel:
        center = await self.get_center(session, center_id)
        if center is None:
            raise NotFoundError("Treatment center not found")
        if center.is_active:
            center.is_active = False
            await session.flush()
            if self.audit_service:
                await self.audit_service.record(
                    session, principal.id, AuditAction.DEACTIVATE,
                    "treatment_center", center.id,
                    {"action": "Treatment center deactivated"},
                )
        return center

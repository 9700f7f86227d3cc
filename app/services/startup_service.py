"""
TrackMyStartup - Startup Service

Startup profile, subsidiaries and the entity list shared by the employee
and financial registers.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import Employee
from app.models.startup import PARENT_ENTITY, Startup, Subsidiary
from app.models.user import User, UserRole
from app.services.currency_service import resolve_currency
from app.utils.date_validation import validate_registration_date
from app.utils.error_handling import (
    AuthorizationException,
    InvalidDateException,
    StartupNotFoundException,
    ValidationException,
    validate_amount,
)

logger = logging.getLogger(__name__)


PROFILE_FIELDS = ("name", "country", "currency", "sector")
AMOUNT_FIELDS = ("current_valuation", "total_funding", "price_per_share")


class StartupService:
    """Service for startup profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_startup(self, startup_id: uuid.UUID) -> Startup:
        startup = await self.db.get(Startup, startup_id)
        if not startup:
            raise StartupNotFoundException(startup_id)
        return startup

    async def get_startup_for_user(self, startup_id: uuid.UUID, user: User) -> Startup:
        """
        Load a startup the user may see.

        Founders see their own startup; admins and the advisory roles see
        any startup. Write access is checked separately.
        """
        startup = await self.get_startup(startup_id)
        if user.role == UserRole.STARTUP and startup.user_id != user.id:
            raise AuthorizationException("You do not have access to this startup", startup_id=startup_id)
        return startup

    async def get_owner(self, startup: Startup) -> Optional[User]:
        if startup.user_id is None:
            return None
        return await self.db.get(User, startup.user_id)

    async def get_currency(self, startup: Startup) -> str:
        return resolve_currency(startup=startup, profile=await self.get_owner(startup))

    async def update_profile(self, startup_id: uuid.UUID, data: Dict[str, Any]) -> Startup:
        """Update profile fields present in `data`."""
        startup = await self.get_startup(startup_id)

        if "name" in data and not (data["name"] or "").strip():
            raise ValidationException("Startup name is required", field="name")
        registration_date = None
        if data.get("registration_date") is not None:
            registration_date = validate_registration_date(data["registration_date"])
            first_joining = await self.db.scalar(
                select(func.min(Employee.joining_date)).where(Employee.startup_id == startup_id)
            )
            if first_joining and registration_date > first_joining:
                raise InvalidDateException(
                    "Registration date cannot be after the earliest employee joining date "
                    f"({first_joining.isoformat()})",
                    field="registration_date",
                )
        amounts = {
            field: validate_amount(data[field], field)
            for field in AMOUNT_FIELDS
            if data.get(field) is not None
        }

        for field in PROFILE_FIELDS:
            if field in data:
                value = data[field]
                if field == "currency" and value:
                    value = value.upper()
                setattr(startup, field, value)
        if registration_date:
            startup.registration_date = registration_date
        for field, value in amounts.items():
            setattr(startup, field, value)

        await self.db.commit()
        await self.db.refresh(startup)
        logger.info(f"Updated profile of startup {startup_id}")
        return startup

    # ===========================================
    # SUBSIDIARIES / ENTITIES
    # ===========================================

    async def list_subsidiaries(self, startup_id: uuid.UUID) -> List[Subsidiary]:
        result = await self.db.execute(
            select(Subsidiary)
            .where(Subsidiary.startup_id == startup_id)
            .order_by(Subsidiary.created_at)
        )
        return list(result.scalars().all())

    async def add_subsidiary(self, startup_id: uuid.UUID, country: str, name: Optional[str] = None) -> Subsidiary:
        await self.get_startup(startup_id)
        if not (country or "").strip():
            raise ValidationException("Subsidiary country is required", field="country")

        subsidiary = Subsidiary(startup_id=startup_id, country=country.strip(), name=name)
        self.db.add(subsidiary)
        await self.db.commit()
        await self.db.refresh(subsidiary)
        return subsidiary

    async def get_entities(self, startup_id: uuid.UUID) -> List[str]:
        """Parent company first, then one entry per subsidiary."""
        entities = [PARENT_ENTITY]
        for subsidiary in await self.list_subsidiaries(startup_id):
            label = subsidiary.entity_label
            if label not in entities:
                entities.append(label)
        return entities

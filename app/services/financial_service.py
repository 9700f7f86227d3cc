"""
TrackMyStartup - Financial Service

Expense and revenue register of a startup, with the chart and summary
data of the financials view.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.financial_record import FinancialRecord, FinancialRecordType
from app.models.startup import PARENT_ENTITY
from app.services.cap_table_service import CapTableService
from app.services.file_storage_service import FileCategory, FileStorageService, file_storage_service
from app.services.financial_aggregation import (
    ALL,
    available_funds,
    monthly_buckets,
    resolve_chart_year,
    sum_by_type,
    vertical_totals,
    year_options,
)
from app.services.startup_service import StartupService
from app.utils.date_validation import validate_financial_record_date
from app.utils.error_handling import (
    FinancialRecordNotFoundException,
    ValidationException,
    validate_amount,
)

logger = logging.getLogger(__name__)


REVENUE_FUNDING_SOURCE = "Revenue"


class FinancialService:
    """Service for financial records."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorageService] = None):
        self.db = db
        self.cap_table = CapTableService(db)
        self.startups = StartupService(db)
        self.storage = storage or file_storage_service

    # ===========================================
    # VALIDATION
    # ===========================================

    def _validate(self, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        """Check required fields and normalise type-specific columns."""
        values: Dict[str, Any] = {}

        if not partial or "record_date" in data:
            values["record_date"] = validate_financial_record_date(data.get("record_date"))

        for field in ("description", "vertical"):
            if not partial or field in data:
                value = (data.get(field) or "").strip()
                if not value:
                    raise ValidationException(f"{field.capitalize()} is required", field=field)
                values[field] = value

        if not partial or "amount" in data:
            values["amount"] = validate_amount(data.get("amount"), "amount", allow_zero=False)

        if "record_type" in data or not partial:
            values["record_type"] = FinancialRecordType(data.get("record_type") or FinancialRecordType.EXPENSE)

        if "entity" in data or not partial:
            values["entity"] = data.get("entity") or PARENT_ENTITY

        if "funding_source" in data:
            values["funding_source"] = data.get("funding_source") or None
        if data.get("cogs") is not None:
            values["cogs"] = validate_amount(data["cogs"], "cogs")
        if "attachment_url" in data:
            values["attachment_url"] = data.get("attachment_url")
        return values

    @staticmethod
    def _apply_type_rules(record: FinancialRecord) -> None:
        if record.record_type == FinancialRecordType.REVENUE:
            record.funding_source = None
        else:
            record.cogs = None

    # ===========================================
    # CRUD
    # ===========================================

    async def get_record(self, startup_id: uuid.UUID, record_id: uuid.UUID) -> FinancialRecord:
        result = await self.db.execute(
            select(FinancialRecord).where(
                FinancialRecord.id == record_id,
                FinancialRecord.startup_id == startup_id,
            )
        )
        record = result.scalar_one_or_none()
        if not record:
            raise FinancialRecordNotFoundException(record_id)
        return record

    async def create_record(self, startup_id: uuid.UUID, data: Dict[str, Any]) -> FinancialRecord:
        await self.startups.get_startup(startup_id)
        values = self._validate(data)

        record = FinancialRecord(startup_id=startup_id, **values)
        self._apply_type_rules(record)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(f"Added {record.record_type.value} {record.id} to startup {startup_id}")
        return record

    async def update_record(
        self,
        startup_id: uuid.UUID,
        record_id: uuid.UUID,
        data: Dict[str, Any],
    ) -> FinancialRecord:
        record = await self.get_record(startup_id, record_id)
        values = self._validate(data, partial=True)

        for field, value in values.items():
            setattr(record, field, value)
        self._apply_type_rules(record)

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete_record(self, startup_id: uuid.UUID, record_id: uuid.UUID) -> None:
        """Delete a record and its stored attachment."""
        record = await self.get_record(startup_id, record_id)
        attachment_url = record.attachment_url

        await self.db.delete(record)
        await self.db.commit()

        await self.storage.delete_file(attachment_url)
        logger.info(f"Deleted financial record {record_id}")

    async def attach_file(
        self,
        startup_id: uuid.UUID,
        record_id: uuid.UUID,
        file_content: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> FinancialRecord:
        record = await self.get_record(startup_id, record_id)
        stored = await self.storage.upload_file(
            startup_id, file_content, filename, content_type, FileCategory.FINANCIAL_ATTACHMENT,
        )

        previous = record.attachment_url
        record.attachment_url = stored["url"]
        await self.db.commit()
        await self.db.refresh(record)

        if previous and previous != record.attachment_url:
            await self.storage.delete_file(previous)
        return record

    async def delete_attachment(self, startup_id: uuid.UUID, record_id: uuid.UUID) -> FinancialRecord:
        record = await self.get_record(startup_id, record_id)
        previous = record.attachment_url

        record.attachment_url = None
        await self.db.commit()
        await self.db.refresh(record)

        await self.storage.delete_file(previous)
        return record

    def get_attachment_download_url(self, record: FinancialRecord) -> Optional[str]:
        return self.storage.resolve_download_url(record.attachment_url)

    # ===========================================
    # QUERIES
    # ===========================================

    async def list_records(
        self,
        startup_id: uuid.UUID,
        entity: Optional[str] = None,
        year: Union[str, int, None] = None,
        record_type: Optional[FinancialRecordType] = None,
        vertical: Optional[str] = None,
    ) -> List[FinancialRecord]:
        """Records newest first. `all` (or None) disables the entity, year and vertical filters."""
        query = select(FinancialRecord).where(FinancialRecord.startup_id == startup_id)
        if entity and entity != ALL:
            query = query.where(FinancialRecord.entity == entity)
        if record_type:
            query = query.where(FinancialRecord.record_type == FinancialRecordType(record_type))
        if vertical and vertical != ALL:
            query = query.where(FinancialRecord.vertical == vertical)

        result = await self.db.execute(
            query.order_by(FinancialRecord.record_date.desc(), FinancialRecord.created_at.desc())
        )
        records = list(result.scalars().all())
        if year is not None and str(year).lower() != ALL:
            records = [r for r in records if r.record_date.year == int(year)]
        return records

    async def get_summary(self, startup_id: uuid.UUID) -> Dict[str, Decimal]:
        startup = await self.startups.get_startup(startup_id)
        records = await self.list_records(startup_id)

        total_funding = await self.cap_table.get_total_funding(startup)
        total_expenses = sum_by_type(records, FinancialRecordType.EXPENSE)
        return {
            "total_funding": total_funding,
            "total_revenue": sum_by_type(records, FinancialRecordType.REVENUE),
            "total_expenses": total_expenses,
            "available_funds": available_funds(total_funding, total_expenses),
        }

    async def get_monthly_data(
        self,
        startup_id: uuid.UUID,
        year: Union[str, int, None] = None,
        entity: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        chart_year = resolve_chart_year(year)
        records = await self.list_records(startup_id, entity=entity, year=chart_year)
        return monthly_buckets(records, chart_year)

    async def get_verticals_breakdown(
        self,
        startup_id: uuid.UUID,
        year: Union[str, int, None] = None,
        entity: Optional[str] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        records = await self.list_records(startup_id, entity=entity, year=resolve_chart_year(year))
        return {
            "revenue": vertical_totals(records, FinancialRecordType.REVENUE),
            "expenses": vertical_totals(records, FinancialRecordType.EXPENSE),
        }

    async def get_entities(self, startup_id: uuid.UUID) -> List[str]:
        return await self.startups.get_entities(startup_id)

    async def get_verticals(self, startup_id: uuid.UUID) -> List[str]:
        result = await self.db.execute(
            select(FinancialRecord.vertical)
            .where(FinancialRecord.startup_id == startup_id)
            .distinct()
            .order_by(FinancialRecord.vertical)
        )
        return list(result.scalars().all())

    async def get_funding_sources(self, startup_id: uuid.UUID) -> List[str]:
        sources = [REVENUE_FUNDING_SOURCE]
        for name in await self.cap_table.get_investor_names(startup_id):
            if name not in sources:
                sources.append(name)
        return sources

    async def get_year_options(self, startup_id: uuid.UUID) -> List[Union[str, int]]:
        startup = await self.startups.get_startup(startup_id)
        result = await self.db.execute(
            select(FinancialRecord.record_date).where(FinancialRecord.startup_id == startup_id)
        )
        return year_options(startup.registration_date, (d.year for d in result.scalars().all()))

    async def get_overview(
        self,
        startup_id: uuid.UUID,
        year: Union[str, int, None] = ALL,
        entity: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Everything the financials view loads, in one call."""
        startup = await self.startups.get_startup(startup_id)
        return {
            "records": await self.list_records(startup_id, entity=entity, year=year),
            "summary": await self.get_summary(startup_id),
            "monthly": await self.get_monthly_data(startup_id, year, entity),
            "verticals": await self.get_verticals_breakdown(startup_id, year, entity),
            "entities": await self.get_entities(startup_id),
            "vertical_options": await self.get_verticals(startup_id),
            "funding_sources": await self.get_funding_sources(startup_id),
            "year_options": await self.get_year_options(startup_id),
            "chart_year": resolve_chart_year(year),
            "currency": await self.startups.get_currency(startup),
        }

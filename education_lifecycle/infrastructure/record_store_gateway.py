"""Record Store Gateways — education records and membership settings over the OData API.

Invariants:
    - find_records_by_category() follows @odata.nextLink until the set is complete
    - update_record_category() PATCHes exactly one field: the category code
    - Category travels as a choice code on the wire (STUDENT=1, NEW_GRADUATED=2,
      GRADUATED=3); the core only ever sees EducationCategory
    - Rows without a record id are dropped with a warning, never raised
    - Fetch failures propagate as RecordStoreError (run-level); a failed PATCH
      is raised as RecordUpdateError carrying the record id (per-record)

Design Decisions:
    - One gateway instance per education program: OT and OTA rows live in
      different entity sets with slightly different column names
    - Field names kept in EducationFields, not scattered through query strings
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from education_lifecycle.core.domain_types import (
    EducationCategory, EducationProgram, EducationRecord, GraduationYearCode,
    RecordId, SubjectBusinessId,
)
from education_lifecycle.core.errors import (
    ErrorContext, RecordStoreError, RecordUpdateError,
)
from education_lifecycle.infrastructure.record_store_client import (
    ResilientRecordStoreClient,
)

logger = logging.getLogger(__name__)

CATEGORY_CODES: dict[EducationCategory, int] = {
    EducationCategory.STUDENT: 1,
    EducationCategory.NEW_GRADUATED: 2,
    EducationCategory.GRADUATED: 3,
}

ACTIVE_SETTINGS_STATUS = 1


@dataclass(frozen=True)
class EducationFields:
    """Column names of one education entity set."""
    record_id: str = "education_id"
    subject_business_id: str = "user_business_id"
    graduation_year: str = "ot_grad_year"
    category: str = "education_category"

    def select(self) -> str:
        return ",".join((
            self.record_id, self.subject_business_id,
            self.graduation_year, self.category,
        ))


PROGRAM_FIELDS: dict[EducationProgram, EducationFields] = {
    EducationProgram.OT: EducationFields(graduation_year="ot_grad_year"),
    EducationProgram.OTA: EducationFields(graduation_year="ota_grad_year"),
}


class ODataEducationGateway:
    """RecordStoreGateway for one education program's entity set."""

    def __init__(
        self,
        client: ResilientRecordStoreClient,
        program: EducationProgram,
        entity_set: str,
        fields: EducationFields | None = None,
    ):
        self._client = client
        self.program = program
        self._entity_set = entity_set
        self._fields = fields or PROGRAM_FIELDS[program]

    async def find_records_by_category(
        self, category: EducationCategory,
    ) -> list[EducationRecord]:
        ctx = ErrorContext(program=self.program.value)
        params: dict | None = {
            "$filter": f"{self._fields.category} eq {CATEGORY_CODES[category]}",
            "$select": self._fields.select(),
        }
        path = self._entity_set
        records: list[EducationRecord] = []

        while path:
            page = await self._client.get_json(path, params=params, context=ctx)
            for row in page.get("value", []):
                record = self._to_record(row, category)
                if record is not None:
                    records.append(record)
            # nextLink is absolute and already carries the query
            path = page.get("@odata.nextLink")
            params = None

        logger.debug(
            f"Fetched {len(records)} {category.value} records",
            extra={"program": self.program.value},
        )
        return records

    async def update_record_category(
        self, record_id: RecordId, new_category: EducationCategory,
    ) -> None:
        ctx = ErrorContext(record_id=record_id, program=self.program.value)
        try:
            await self._client.patch_json(
                f"{self._entity_set}({record_id})",
                {self._fields.category: CATEGORY_CODES[new_category]},
                context=ctx,
            )
        except RecordStoreError as e:
            raise RecordUpdateError(record_id, e.message, ctx) from e

    async def health_check(self) -> bool:
        try:
            await self._client.get_json(
                self._entity_set,
                params={"$top": "1", "$select": self._fields.record_id},
            )
            return True
        except Exception as e:
            logger.error(
                f"Record store health check failed: {e}",
                extra={"program": self.program.value},
            )
            return False

    def _to_record(
        self, row: dict, category: EducationCategory,
    ) -> EducationRecord | None:
        record_id = row.get(self._fields.record_id)
        if not record_id:
            logger.warning(
                "Dropping education row without record id",
                extra={"program": self.program.value},
            )
            return None
        grad_year = row.get(self._fields.graduation_year)
        return EducationRecord(
            record_id=RecordId(str(record_id)),
            subject_business_id=SubjectBusinessId(
                str(row.get(self._fields.subject_business_id) or ""),
            ),
            graduation_year=(
                GraduationYearCode(grad_year) if isinstance(grad_year, int) else None
            ),
            category=category,
            program=self.program,
        )


class ODataMembershipSettingsSource:
    """MembershipSettingsSource reading the active membership year's end date."""

    def __init__(
        self,
        client: ResilientRecordStoreClient,
        entity_set: str,
        year_ends_field: str = "year_ends",
        status_field: str = "membership_year_status",
    ):
        self._client = client
        self._entity_set = entity_set
        self._year_ends_field = year_ends_field
        self._status_field = status_field

    async def get_current_membership_expiry_date(self) -> date | None:
        page = await self._client.get_json(
            self._entity_set,
            params={
                "$filter": f"{self._status_field} eq {ACTIVE_SETTINGS_STATUS}",
                "$select": self._year_ends_field,
                "$orderby": f"{self._year_ends_field} desc",
                "$top": "1",
            },
        )
        rows = page.get("value", [])
        if not rows:
            return None
        return parse_store_date(rows[0].get(self._year_ends_field))


def parse_store_date(value: object) -> date | None:
    """Date-only or datetime ISO string from the store -> date. None if absent or unparseable."""
    if not isinstance(value, str) or not value:
        return None
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError:
        logger.warning(f"Unparseable membership expiry date: {value!r}")
        return None

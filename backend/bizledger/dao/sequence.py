"""
Document sequence DAO.

WHAT: Allocates per-organization sequential numbers for invoices and
quotations (INV-0001, QT-0001, ...).

WHY: Numbers must be unique and gap-free within an organization even when
two members create documents at the same time.

HOW: The counter row is read with SELECT ... FOR UPDATE inside the caller's
transaction, incremented and flushed. The lock is held until the request
commits or rolls back, so a rolled-back create also gives its number back.
SQLite ignores FOR UPDATE; it serializes writers on its own.

The first allocation inserts the row with ON CONFLICT DO NOTHING, so two
requests racing to create it both end up locking the same row.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.config import settings
from bizledger.dao.base import BaseDAO
from bizledger.models.sequence import DocumentSequence, DocumentType


def default_prefix(doc_type: DocumentType) -> str:
    if doc_type == DocumentType.INVOICE:
        return settings.INVOICE_NUMBER_PREFIX
    return settings.QUOTATION_NUMBER_PREFIX


def format_document_number(prefix: str, value: int, padding: Optional[int] = None) -> str:
    """
    Format a sequence value.

    Example:
        >>> format_document_number("INV-", 7, 4)
        'INV-0007'
    """
    width = settings.DOCUMENT_NUMBER_PADDING if padding is None else padding
    return f"{prefix}{value:0{width}d}"


class DocumentSequenceDAO(BaseDAO[DocumentSequence]):
    """Data Access Object for DocumentSequence model."""

    def __init__(self, session: AsyncSession):
        super().__init__(DocumentSequence, session)

    async def _get(
        self, org_id: int, doc_type: DocumentType, lock: bool = False
    ) -> Optional[DocumentSequence]:
        query = select(DocumentSequence).where(
            DocumentSequence.org_id == org_id,
            DocumentSequence.doc_type == doc_type,
        )
        if lock:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        org_id: int,
        doc_type: DocumentType,
        prefix: Optional[str] = None,
        starting_number: int = 1,
    ) -> DocumentSequence:
        """
        Return the organization's counter row (locked), creating it on first use.

        prefix and starting_number only apply when this call creates the row.
        """
        sequence = await self._get(org_id, doc_type, lock=True)
        if sequence is not None:
            return sequence

        dialect = self.session.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        await self.session.execute(
            insert(DocumentSequence)
            .values(
                org_id=org_id,
                doc_type=doc_type,
                prefix=prefix if prefix is not None else default_prefix(doc_type),
                current_value=0,
                starting_number=starting_number,
            )
            .on_conflict_do_nothing(index_elements=["org_id", "doc_type"])
        )
        return await self._get(org_id, doc_type, lock=True)

    async def next_value(self, org_id: int, doc_type: DocumentType) -> int:
        """Allocate and return the next integer for (org_id, doc_type)."""
        sequence = await self.get_or_create(org_id, doc_type)
        value = max(sequence.current_value + 1, sequence.starting_number)
        sequence.current_value = value
        await self.session.flush()
        return value

    async def next_number(self, org_id: int, doc_type: DocumentType) -> str:
        """
        Allocate the next formatted document number.

        Args:
            org_id: Organization the number belongs to
            doc_type: INVOICE or QUOTATION

        Returns:
            Formatted number, e.g. "INV-0001"
        """
        value = await self.next_value(org_id, doc_type)
        sequence = await self._get(org_id, doc_type)
        return format_document_number(sequence.prefix, value)

    async def preview_next_number(self, org_id: int, doc_type: DocumentType) -> str:
        """Return the number the next allocation would produce, without allocating."""
        sequence = await self._get(org_id, doc_type)
        if sequence is None:
            return format_document_number(default_prefix(doc_type), 1)
        value = max(sequence.current_value + 1, sequence.starting_number)
        return format_document_number(sequence.prefix, value)

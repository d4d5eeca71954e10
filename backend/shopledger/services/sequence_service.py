# Overview: Document number allocation per family.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ValidationError
from ..models import DocumentSequence


# Document family -> label prefix
DOCUMENT_PREFIXES = {
    "order": "ORD",
    "sales": "INV",
    "purchase": "PB",
    "sales-return": "SR",
    "purchase-return": "PR",
    "write-off": "WO",
    "stock-transfer": "ST",
    "stock-adjustment": "ADJ",
    "rental-contract": "RC",
    "rental-bill": "RB",
}


def format_document_number(prefix: str, number: int, pad: int = 6) -> str:
    return f"{prefix}-{number:0{pad}d}"


class SequenceCounter:
    """
    Atomically allocate the next number for a document family.

    Runs inside the caller's transaction: the increment is a single
    row-locked UPDATE, so concurrent issuers serialize on the counter row
    and a rolled-back issuance also rolls the increment back. Gaps are
    possible, duplicates are not.
    """

    def __init__(self, session):
        self.session = session

    def next_number(self, family: str) -> int:
        if not family:
            raise ValidationError("family is required")

        stmt = (
            update(DocumentSequence)
            .where(DocumentSequence.family == family)
            .values(next_number=DocumentSequence.next_number + 1)
            .execution_options(synchronize_session=False)
        )

        if self.session.execute(stmt).rowcount:
            return self._read_allocated(family)

        # First use of the family. The insert runs in a SAVEPOINT so that
        # losing a race only discards the savepoint, not the caller's work.
        try:
            with self.session.begin_nested():
                self.session.add(DocumentSequence(family=family, next_number=2))
            return 1
        except IntegrityError:
            if not self.session.execute(stmt).rowcount:
                raise
            return self._read_allocated(family)

    def next_label(self, family: str) -> tuple[int, str]:
        """Allocate a number and render its label, e.g. (42, 'INV-000042')."""
        number = self.next_number(family)
        prefix = DOCUMENT_PREFIXES.get(family, family.upper())
        return number, format_document_number(prefix, number)

    def _read_allocated(self, family: str) -> int:
        current = (
            self.session.query(DocumentSequence.next_number)
            .filter_by(family=family)
            .scalar()
        )
        return current - 1

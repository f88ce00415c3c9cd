"""Signatures: named sector allocations that must sum to 100%."""

from __future__ import annotations

import uuid
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from indexpilot.core.exceptions import NotFoundError, ValidationError
from indexpilot.core.logging import get_logger
from indexpilot.database.orm import Signature
from indexpilot.domain.scoring import PERCENTAGE_TOLERANCE, CompositionEntry
from indexpilot.repositories.signatures_orm import SignatureRepository

logger = get_logger("signature")


def validate_composition(
    composition: Iterable[Union[CompositionEntry, dict[str, Any]]],
) -> list[CompositionEntry]:
    """Check entries and their total; percentages are never rescaled.

    Raises:
        ValidationError: empty composition, a malformed entry, or a total
            further than 0.01 from 100.
    """
    entries: list[CompositionEntry] = []
    for position, item in enumerate(composition):
        try:
            entries.append(
                item if isinstance(item, CompositionEntry) else CompositionEntry.model_validate(item)
            )
        except PydanticValidationError as e:
            raise ValidationError(
                message=f"Invalid composition entry at position {position}",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e

    if not entries:
        raise ValidationError(message="Composition must contain at least one sector")

    total = sum(entry.percentage for entry in entries)
    if abs(total - 100) > PERCENTAGE_TOLERANCE:
        raise ValidationError(
            message=f"Composition percentages must sum to 100. Current sum: {total}",
            details={"total": total},
        )
    return entries


class SignatureService:
    def __init__(self, signatures: SignatureRepository):
        self._signatures = signatures

    async def create_signature(
        self,
        name: str,
        composition: Iterable[Union[CompositionEntry, dict[str, Any]]],
        created_by: str,
        description: Optional[str] = None,
    ) -> Signature:
        if not name or not name.strip():
            raise ValidationError(message="Signature name must not be empty")
        entries = validate_composition(composition)

        signature = await self._signatures.create(
            name=name.strip(),
            description=description,
            composition=[entry.model_dump() for entry in entries],
            created_by=created_by,
        )
        logger.info(f"Created signature {signature.id} '{signature.name}' with {len(entries)} sectors")
        return signature

    async def get_signature(self, signature_id: uuid.UUID) -> Signature:
        signature = await self._signatures.get(signature_id)
        if signature is None:
            raise NotFoundError(message=f"Signature {signature_id} not found")
        return signature

    async def list_signatures(self) -> list[Signature]:
        return await self._signatures.list_all()

from __future__ import annotations

from dataclasses import dataclass

from maintenance_service.domain.value_objects.enums import RecipientKind


@dataclass(frozen=True, slots=True)
class Recipient:
    address: str
    kind: RecipientKind
    display_name: str | None = None

    @property
    def dedupe_key(self) -> str:
        return self.address.strip().lower()

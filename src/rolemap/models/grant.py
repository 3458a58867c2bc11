"""Legacy access-policy grant models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PermissionCategory(str, Enum):
    KEYS = "keys"
    SECRETS = "secrets"
    CERTIFICATES = "certificates"
    STORAGE = "storage"


class LegacyGrant(BaseModel):
    """One identity's access-policy entry, as listed on the vault resource."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tenant_id: str = Field(default="", alias="tenantId")
    object_id: str = Field(alias="objectId")
    application_id: Optional[str] = Field(default=None, alias="applicationId")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    type: str = "Unknown"
    permissions: dict[str, Optional[list[str]]] = {}

    @property
    def label(self) -> str:
        return self.display_name or "Unknown"

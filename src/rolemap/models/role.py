"""Role definition and role assignment models (ARM REST shapes)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RolePermission(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    actions: list[str] = []
    not_actions: list[str] = Field(default=[], alias="notActions")
    data_actions: list[str] = Field(default=[], alias="dataActions")
    not_data_actions: list[str] = Field(default=[], alias="notDataActions")


class RoleProperties(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role_name: str = Field(alias="roleName")
    description: Optional[str] = None
    type: str = "BuiltInRole"
    permissions: list[RolePermission] = []
    assignable_scopes: list[str] = Field(default=[], alias="assignableScopes")


class RoleDefinition(BaseModel):
    """A candidate target role. Read-only input."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    name: str
    type: str = "Microsoft.Authorization/roleDefinitions"
    properties: RoleProperties

    @property
    def role_name(self) -> str:
        return self.properties.role_name

    @property
    def data_actions(self) -> list[str]:
        """All granted data-action patterns, in declaration order."""
        return [da for perm in self.properties.permissions for da in perm.data_actions]


class AssignmentProperties(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role_definition_id: str = Field(alias="roleDefinitionId")
    principal_id: str = Field(alias="principalId")
    principal_type: str = Field(default="Unknown", alias="principalType")
    scope: str = ""


class RoleAssignment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    name: str = ""
    type: str = "Microsoft.Authorization/roleAssignments"
    properties: AssignmentProperties

    @property
    def principal_id(self) -> str:
        return self.properties.principal_id

    @property
    def role_definition_name(self) -> str:
        """Role definition GUID: the last segment of the definition id."""
        return self.properties.role_definition_id.rstrip("/").split("/")[-1]

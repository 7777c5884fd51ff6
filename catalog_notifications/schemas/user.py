"""Authenticated user schema returned by the project catalog API."""

from pydantic import Field

from catalog_notifications.schemas.base_schema_model import BaseSchemaModel


class CurrentUser(BaseSchemaModel):
    """Identity of the authenticated user (``GET /users/me``).

    Only ``id`` is needed to scope the live notification topic; the rest is
    informational.
    """

    id: int = Field(..., description="Unique identifier for the user")
    email: str | None = Field(None, description="Email address for the user")
    full_name: str | None = Field(None, description="Full name of the user")
    role: str | None = Field(None, description="Catalog role (STUDENT, SUPERVISOR, ADMIN)")

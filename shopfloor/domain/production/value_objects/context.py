"""Request-scoped identity passed explicitly to every engine call."""

from uuid import UUID

from pydantic import Field

from ...shared.base import ValueObject


class RequestContext(ValueObject):
    """Tenant and acting user for one unit of work."""

    tenant_id: str = Field(min_length=1)
    user_id: UUID | None = None

    def owns(self, tenant_id: str) -> bool:
        """Check whether an entity's tenant is visible to this request."""
        return self.tenant_id == tenant_id

    def log_fields(self) -> dict[str, str | None]:
        return {
            "tenant_id": self.tenant_id,
            "user_id": str(self.user_id) if self.user_id else None,
        }

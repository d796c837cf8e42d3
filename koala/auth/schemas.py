# =============================================================================
# KOALA WEB TOOLKIT - AUTH SCHEMAS
# =============================================================================
# File: koala/auth/schemas.py
# Description: User details and bearer token models
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


class UserDetails(BaseModel):
    """
    User data used by the authentication service.

    The username should be a unique value, as an email field. The password
    is the stored hash.
    """
    model_config = ConfigDict(from_attributes=True)

    username: str
    password: str = ""
    is_active: bool = True


class Token(BaseModel):
    """Opaque bearer credential, serialized as ``{"token": "<value>"}``."""

    value: str = Field(default="", serialization_alias="token", validation_alias="token")

    def __init__(self, value: str = "", **data):
        if "token" not in data:
            data["token"] = value
        super().__init__(**data)

    def __str__(self) -> str:
        return self.value

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)

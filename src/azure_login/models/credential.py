"""Credential data models."""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .environment import short_name


class AzureCredential(BaseModel):
    """
    A bearer credential for the Azure management API.

    Serialized with camelCase keys, matching the ``azure-secret.json`` file.
    """

    model_config = ConfigDict(populate_by_name=True)

    access_token_type: Optional[str] = Field(None, alias="accessTokenType")
    id_token: Optional[str] = Field(None, alias="idToken")
    user_info: Optional[dict[str, Any]] = Field(None, alias="userInfo")
    access_token: str = Field(..., alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    is_multiple_resource_refresh_token: bool = Field(
        False, alias="isMultipleResourceRefreshToken"
    )
    default_subscription: Optional[str] = Field(None, alias="defaultSubscription")
    environment: Optional[str] = Field(None, alias="environment")

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: Optional[str]) -> Optional[str]:
        # Once set, always one of the four short names
        if value is None:
            return None
        return short_name(value)

    def to_json_dict(self) -> dict[str, Any]:
        """Dictionary with the persisted (camelCase) key names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_token_response(
        cls,
        response: dict[str, Any],
        user_info: Optional[dict[str, Any]] = None,
    ) -> "AzureCredential":
        """
        Build a credential from an OAuth2 token endpoint response.

        Args:
            response: JSON body returned by the ``/oauth2/token`` endpoint
            user_info: Identity claims extracted from the id token, if any
        """
        return cls(
            access_token_type=response.get("token_type"),
            id_token=response.get("id_token"),
            user_info=user_info,
            access_token=response.get("access_token") or "",
            refresh_token=response.get("refresh_token"),
            # v1 endpoints return the resource for multi-resource refresh tokens
            is_multiple_resource_refresh_token=bool(response.get("resource")),
        )


@dataclass(frozen=True)
class DeviceCodeInfo:
    """Device code returned by the ``/oauth2/devicecode`` endpoint."""

    user_code: str
    device_code: str
    verification_url: str
    expires_in: int
    interval: int
    message: Optional[str] = None

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "DeviceCodeInfo":
        return cls(
            user_code=response["user_code"],
            device_code=response["device_code"],
            verification_url=response.get("verification_url")
            or response.get("verification_uri", ""),
            # v1 endpoints send these as strings
            expires_in=int(response["expires_in"]),
            interval=int(response.get("interval") or 5),
            message=response.get("message"),
        )

    @property
    def instructions(self) -> str:
        if self.message:
            return self.message
        return (
            f"To sign in, use a web browser to open the page {self.verification_url} "
            f"and enter the code {self.user_code} to authenticate."
        )


@dataclass
class CallbackResult:
    """Query parameters captured by the local OAuth callback listener."""

    code: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return not self.error and bool(self.code)

    @property
    def is_complete(self) -> bool:
        return bool(self.code) or bool(self.error)

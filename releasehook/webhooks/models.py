"""Webhook event and GitHub release payload models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass
class WebhookEvent:
    """One inbound delivery. Lives only for the duration of the request."""

    event_type: str
    body: bytes
    payload: dict[str, Any] = field(default_factory=dict)
    delivery_id: str = ""

    @property
    def action(self) -> str:
        action = self.payload.get("action")
        return action if isinstance(action, str) else ""


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Release(_Payload):
    id: int
    name: str = ""
    tag_name: str
    draft: bool = False
    prerelease: bool = False
    html_url: str = ""
    body: str = ""

    @field_validator("name", "body", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Repository(_Payload):
    id: int = 0
    name: str = ""
    full_name: str
    html_url: str = ""


class Sender(_Payload):
    login: str = ""


class ReleasePayload(_Payload):
    action: str
    release: Release
    repository: Repository
    sender: Sender = Field(default_factory=Sender)

"""Structured error payload schema returned by every failing endpoint."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Error envelope produced by the installed exception handlers."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Human-readable message, or the validation error list for 422 responses.",
        examples=["Only admins can change member roles."],
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error code.",
        examples=["admin_required", "sole_member", "mixed_workspaces"],
    )
    retryable: bool | None = Field(
        default=None,
        description="Whether the call may succeed if retried unchanged.",
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )

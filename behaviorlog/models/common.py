"""Shared request envelope configuration and small response types."""

from pydantic import BaseModel, ConfigDict


class RequestEnvelope(BaseModel):
    """Base for request bodies: unknown fields are rejected.

    Tenant and author fields are never accepted from a body. They come from
    the authenticated actor.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ResponseModel(BaseModel):
    """Base for response bodies built from repository records."""

    model_config = ConfigDict(from_attributes=True)


class SuccessResponse(BaseModel):
    """Acknowledgement for deletes and deactivations."""

    success: bool = True

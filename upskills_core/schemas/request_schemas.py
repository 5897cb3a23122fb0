"""
Strictly-typed request models.

Raw request bodies are parsed into one of the ``ParsedRequest`` variants
before anything reaches the ingestion pipeline; a shape mismatch is rejected
here with a stable error kind.
"""

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import RequestValidationError


class RegisterSkillRequest(BaseModel):
    """Body of a skill registration."""

    kind: Literal["register_skill"] = "register_skill"
    source_url: StrictStr
    alias: Optional[StrictStr] = None

    model_config = ConfigDict(extra="ignore", frozen=True)


class SearchSkillsRequest(BaseModel):
    """Query of a skill search; a blank query lists everything."""

    kind: Literal["search_skills"] = "search_skills"
    q: str = ""

    model_config = ConfigDict(extra="ignore", frozen=True)


ParsedRequest = Annotated[
    Union[RegisterSkillRequest, SearchSkillsRequest], Field(discriminator="kind")
]

_parsed_request_adapter: TypeAdapter = TypeAdapter(ParsedRequest)

# Per-field error kinds for registration bodies
_REGISTER_FIELD_KINDS = {
    "source_url": ("invalid_source_url", "source_url must be a string"),
    "alias": ("invalid_alias", "alias must be a string"),
}


def _decode_body(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RequestValidationError(
                "invalid_json", "invalid JSON body", status_code=400, cause=e
            ) from e
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise RequestValidationError(
                "invalid_json", "invalid JSON body", status_code=400, cause=e
            ) from e
    return raw


def parse_register_request(raw: Any) -> RegisterSkillRequest:
    """
    Parse a registration body (JSON text, bytes or an already-decoded mapping).

    Raises:
        RequestValidationError: ``invalid_json`` for undecodable or non-object
            bodies, ``invalid_source_url`` / ``invalid_alias`` for wrong types
    """
    body = _decode_body(raw)
    if not isinstance(body, dict):
        raise RequestValidationError("invalid_json", "request body must be a JSON object", status_code=400)

    payload = {k: v for k, v in body.items() if k != "kind"}
    try:
        return RegisterSkillRequest.model_validate(payload)
    except PydanticValidationError as e:
        first_field = next(
            (str(err["loc"][0]) for err in e.errors() if err.get("loc")), "source_url"
        )
        kind, message = _REGISTER_FIELD_KINDS.get(first_field, _REGISTER_FIELD_KINDS["source_url"])
        raise RequestValidationError(kind, message, field=first_field) from None


def parse_search_request(q: Optional[str]) -> SearchSkillsRequest:
    """Parse a search query string; ``None`` is treated as blank."""
    return SearchSkillsRequest(q=q or "")


def parse_request(raw: Any) -> Union[RegisterSkillRequest, SearchSkillsRequest]:
    """
    Parse a tagged body (``{"kind": ..., ...}``) into its ParsedRequest variant.
    """
    body = _decode_body(raw)
    try:
        return _parsed_request_adapter.validate_python(body)
    except PydanticValidationError as e:
        raise RequestValidationError(
            "invalid_request", "request does not match any known shape", status_code=400
        ) from e

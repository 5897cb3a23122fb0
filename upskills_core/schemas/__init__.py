"""Pydantic schemas and value types for upskills."""

from .collection_schemas import CollectionCreated, CollectionRead
from .request_schemas import (
    ParsedRequest,
    RegisterSkillRequest,
    SearchSkillsRequest,
    parse_register_request,
    parse_request,
    parse_search_request,
)
from .skill_schemas import SkillDetail, SkillList, SkillRead, SkillRegistration, SkillSummary
from .skill_update import UNCHANGED, SetTo, SkillFetchUpdate

__all__ = [
    "CollectionCreated",
    "CollectionRead",
    "ParsedRequest",
    "RegisterSkillRequest",
    "SearchSkillsRequest",
    "parse_register_request",
    "parse_request",
    "parse_search_request",
    "SkillDetail",
    "SkillList",
    "SkillRead",
    "SkillRegistration",
    "SkillSummary",
    "UNCHANGED",
    "SetTo",
    "SkillFetchUpdate",
]

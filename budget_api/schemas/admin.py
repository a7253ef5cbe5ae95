from typing import Any, Dict, List

from pydantic import BaseModel


class AdminCheckResponse(BaseModel):
    is_global_admin: bool


class TableInfo(BaseModel):
    name: str
    display_name: str
    editable_fields: List[str]
    search_fields: List[str]


class RecordPayload(BaseModel):
    """Column values keyed by field name; non-editable fields are ignored."""
    data: Dict[str, Any]

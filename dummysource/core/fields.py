from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class FieldType(str, Enum):
    UINT64 = "uint64"
    STRING = "string"


class FieldDescriptor(BaseModel):
    id: int = Field(..., ge=0, description="Stable dispatch key")
    type: FieldType
    name: str
    arg_required: bool = False
    description: str = ""

    model_config = {"frozen": True}


class ExtractRequest:
    """A single field lookup against one event; the result lands in ``value``."""

    def __init__(self, field_id: int, field_name: str = "", arg: Optional[str] = None):
        self.field_id = field_id
        self.field_name = field_name
        self.arg = arg
        self.value: Any = None
        self.is_set = False

    def set_value(self, value: Any) -> None:
        self.value = value
        self.is_set = True

    @property
    def field(self) -> str:
        return self.field_name or str(self.field_id)

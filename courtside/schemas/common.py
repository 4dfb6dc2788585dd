from typing import Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict

# category id -> number, or "made/attempted" for compound ids
StatBag = Dict[str, Union[int, float, str]]

T = TypeVar("T")


class Record(BaseModel):
    """Immutable normalized record. A refresh builds a new one."""

    model_config = ConfigDict(frozen=True)


class RecordList(BaseModel, Generic[T]):
    """A list result. ``error`` carries a marker such as ``NotAuthorized`` when the list was degraded."""

    items: List[T] = []
    error: Optional[str] = None

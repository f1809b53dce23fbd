from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Common response envelope"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None

"""Common Pydantic schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel

from src.shared.datetimes import as_utc

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class MessageResponse(BaseModel):
    """Standard success/failure envelope without payload."""

    success: bool = True
    message: str | None = None

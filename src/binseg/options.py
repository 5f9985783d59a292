"""
Load options for binary artifacts.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class LoadOptions(BaseModel):
    """
    Options controlling how an artifact is loaded.

    By default every declared segment is checked against the loaded buffer
    once, before the artifact is returned. With ``check_bounds`` disabled the
    check is deferred to accessor calls.
    """
    check_bounds: bool = Field(
        default=True,
        alias="checkBounds",
        description="Validate all segment ranges at load time",
    )
    max_size: Optional[int] = Field(
        default=None,
        alias="maxSize",
        ge=0,
        description="Reject artifacts larger than this many bytes",
    )

    model_config = {"populate_by_name": True, "frozen": True}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {"checkBounds": self.check_bounds}
        if self.max_size is not None:
            result["maxSize"] = self.max_size
        return result


DEFAULT_LOAD_OPTIONS = LoadOptions()

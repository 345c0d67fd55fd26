# models.py
# Data contracts for paths and the update log.
# No tree logic lives here, only schema and validation.

from pydantic import BaseModel, ConfigDict, Field


class UpdateLogEntry(BaseModel):
    """One committed leaf change. Written once, never edited."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Leaf index that was changed.")
    old_element: str = Field(..., description="Leaf value before the update.")
    new_element: str = Field(..., description="Leaf value after the update.")


class PathResult(BaseModel):
    """Authentication path for one leaf, plus the root it hashes up to."""

    model_config = ConfigDict(frozen=True)

    root: str
    path_elements: list[str] = Field(..., description="Sibling values, leaf level first.")
    path_index: list[int] = Field(..., description="1 where the path node is a right child.")

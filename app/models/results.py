"""Write outcomes returned by the store and echoed back to API callers."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WriteResult(BaseModel):
    """
    Outcome of a single-document write. Serialized with the same keys the
    MongoDB drivers use (matchedCount, modifiedCount, insertedId).
    """

    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = True
    matched_count: int = Field(default=0, alias="matchedCount")
    modified_count: int = Field(default=0, alias="modifiedCount")
    inserted_id: Optional[str] = Field(default=None, alias="insertedId")

    @property
    def matched(self) -> bool:
        return self.matched_count > 0

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class UpsertOutcome(BaseModel):
    """Result of an identity upsert: whether the document was created."""

    created: bool
    result: WriteResult

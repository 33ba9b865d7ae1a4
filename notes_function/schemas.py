from pydantic import BaseModel, ConfigDict, Field


class NoteCreate(BaseModel):
    """Schema for creating a note. Both fields must be non-empty strings."""
    title: str = Field(..., min_length=1, description="Note title (non-empty).")
    content: str = Field(..., min_length=1, description="Note content (non-empty).")


class NoteOut(BaseModel):
    """Schema returned for a note."""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Database ID of the note.")
    title: str
    content: str

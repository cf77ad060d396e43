"""
Pydantic schemas for data models.

A rating is a single (user, item) observation. Test instances share the
same shape: the item is the held-out ground truth for the user.
"""

from pydantic import BaseModel, ConfigDict, Field


class Rating(BaseModel):
    """A single user-item interaction."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., ge=0, description="Dense 0-based user index")
    item_id: int = Field(..., ge=0, description="Dense 0-based item index")
    score: float = Field(default=1.0, description="Explicit rating or implicit weight")
    timestamp: int = Field(default=0, description="Event time, used to order online streams")


# A test instance pairs a user with its ground-truth item
TestInstance = Rating

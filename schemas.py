"""
Database Schemas

Each Pydantic model describes the documents of one MongoDB collection and
carries its defaults, so a document can be built and checked without a
database connection.

    Campaign -> "campaigns"
    User     -> "users"
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

Number = Union[int, float]

# [latitude, longitude] of Baghdad
DEFAULT_LOCATION = [33.3152, 44.3661]
DEFAULT_ORGANIZER = "Benefactor"
DEFAULT_DAYS_LEFT = 30

DEFAULT_ROLE = "donor"
DEFAULT_STATUS = "active"

# Fields a client may set when creating a campaign
CAMPAIGN_CREATE_FIELDS = ("title", "description", "goal", "image", "location")


def _now():
    return datetime.now(timezone.utc)


class Campaign(BaseModel):
    """Campaigns collection schema
    Collection name: "campaigns"
    """
    title: str = Field(..., min_length=1, description="Campaign title")
    description: str = Field(..., min_length=1, description="What the money is for")
    goal: Number = Field(..., description="Amount to raise")
    raised: Number = Field(0, description="Amount raised so far")
    image: Optional[str] = Field(None, description="Cover image URL")
    organizer: str = Field(DEFAULT_ORGANIZER, description="Who runs the campaign")
    daysLeft: int = Field(DEFAULT_DAYS_LEFT, description="Days until the campaign closes")
    location: List[float] = Field(default_factory=lambda: list(DEFAULT_LOCATION), description="[lat, lon]")
    createdAt: datetime = Field(default_factory=_now)


class CampaignUpdate(BaseModel):
    """Partial campaign; only the fields a client sends are written."""
    title: Optional[str] = None
    description: Optional[str] = None
    goal: Optional[Number] = None
    raised: Optional[Number] = None
    image: Optional[str] = None
    organizer: Optional[str] = None
    daysLeft: Optional[int] = None
    location: Optional[List[float]] = None
    createdAt: Optional[datetime] = None


class User(BaseModel):
    """Users collection schema
    Collection name: "users"
    """
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Contact email")
    role: str = Field(DEFAULT_ROLE, description="donor, volunteer or admin")
    status: str = Field(DEFAULT_STATUS, description="active or banned")
    date: datetime = Field(default_factory=_now)


def build_campaign(payload: Dict[str, Any]) -> Campaign:
    """Fill a new campaign from a create request.

    Only the client-settable fields are taken from the payload; the rest
    get their defaults. A missing location falls back to DEFAULT_LOCATION.

    Raises:
        pydantic.ValidationError: a required field is missing or has the wrong type
    """
    data = {key: payload.get(key) for key in CAMPAIGN_CREATE_FIELDS if payload.get(key) is not None}
    if not data.get("location"):
        data["location"] = list(DEFAULT_LOCATION)
    return Campaign(**data)


def campaign_update_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    """The fields of an update request that should be written, validated."""
    return CampaignUpdate.model_validate(payload).model_dump(exclude_unset=True)


def build_user(payload: Dict[str, Any]) -> User:
    """Fill a new user, applying defaults to everything not given."""
    data = {key: value for key, value in payload.items() if value is not None}
    return User.model_validate(data)

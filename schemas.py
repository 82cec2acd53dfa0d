"""
Database Schemas

MongoDB collection schemas as Pydantic models.
Each model is one collection; the lowercased class name is the collection
name (User -> "user", TestRide -> "testride"). Documents are stored with
camelCase keys so they can be returned to the frontend as-is.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from database import utcnow

TestRideStatus = Literal["pending", "confirmed", "cancelled", "completed"]
SaleStatus = Literal["pending", "evaluated", "quoted", "sold", "rejected"]
VehicleCondition = Literal["excellent", "good", "fair", "poor"]
FeedbackType = Literal["suggestion", "complaint", "praise", "other"]

TEST_RIDE_STATUSES = get_args(TestRideStatus)
SALE_STATUSES = get_args(SaleStatus)
VEHICLE_CONDITIONS = get_args(VehicleCondition)
FEEDBACK_TYPES = get_args(FeedbackType)


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, arbitrary_types_allowed=True)


class LoginEvent(Document):
    """One successful login, appended to User.login_history"""
    timestamp: datetime = Field(default_factory=utcnow)
    ip: Optional[str] = Field(None, description="Best-effort client address")
    user_agent: Optional[str] = Field(None, description="Raw User-Agent header")
    location: str = Field("Unknown", description="Geolocation placeholder")
    device: str = Field("Other", description="Device or OS token parsed from the user agent")
    browser: str = Field("Unknown", description="Browser token parsed from the user agent")


class User(Document):
    """
    Collection name: "user"
    Unique on email and phone. `password` only ever holds a bcrypt hash.
    """
    name: str = Field(..., description="Full name")
    phone: str = Field(..., description="Phone number")
    email: str = Field(..., description="Lowercased email address")
    email2: Optional[str] = Field(None, description="Secondary email")
    address: Optional[str] = None
    bio: Optional[str] = None
    password: str = Field(..., description="bcrypt hash")
    login_history: List[LoginEvent] = Field(default_factory=list)


class Favorite(Document):
    """
    Collection name: "favorite"
    Unique on (userId, vehicleId). Vehicle fields are a display snapshot.
    """
    user_id: Any = Field(..., description="ObjectId of the owning user")
    vehicle_id: int
    vehicle_name: str
    vehicle_brand: str
    vehicle_price: float
    vehicle_image: str
    added_at: datetime = Field(default_factory=utcnow)


class Review(Document):
    """Collection name: "review" """
    vehicle_id: int
    user_id: Any
    user_name: str = Field(..., description="Author name at the time of writing")
    rating: int = Field(..., ge=1, le=5)
    title: str
    comment: str
    date: datetime = Field(default_factory=utcnow)


class TestRide(Document):
    """
    Collection name: "testride"
    Cancelling a booking moves it to "cancelled"; records are never removed.
    """
    name: str
    email: str
    phone: str
    vehicle_id: int
    date: datetime
    time: str
    showroom: str
    user_id: Any = None
    status: TestRideStatus = "pending"


class SellVehicle(Document):
    """Collection name: "sellvehicle" """
    name: str
    email: str
    phone: str
    vehicle_brand: str
    vehicle_model: str
    year: int
    km_driven: float
    expected_price: float
    condition: VehicleCondition = "good"
    description: str = ""
    status: SaleStatus = "pending"
    user_id: Any = None


class Feedback(Document):
    """Collection name: "feedback" (write-once)"""
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    feedback_type: FeedbackType = "suggestion"
    user_id: Any = None
    created_at: datetime = Field(default_factory=utcnow)

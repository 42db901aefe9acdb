"""SQLAlchemy models for the deal marketplace."""
from app.models.deal_model import Deal
from app.models.profile_model import Profile
from app.models.saved_listing_model import SavedListing

__all__ = [
    "Deal",
    "Profile",
    "SavedListing",
]

"""
Review data model.

Represents one customer review row from a marketplace spreadsheet export.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ReviewRecord:
    """
    One review parsed from the export.
    Immutable once created by ingestion.
    """
    asin: str  # Product identifier
    title: str = ""
    content: str = ""  # Review body
    is_vp: bool = False  # Verified purchase
    is_vine: bool = False  # Incentivized (Vine Voice) review
    variant: str = ""  # Model / variant label
    has_video: bool = False
    video_url: Optional[str] = None
    review_url: str = ""
    author: str = ""
    avatar_url: Optional[str] = None
    country: str = ""
    author_url: Optional[str] = None
    influencer_url: Optional[str] = None
    date: str = ""  # YYYY-MM-DD, or date-time as exported
    rating: int = 0  # 1-5, 0 means unknown

    def __post_init__(self):
        if self.rating not in (0, 1, 2, 3, 4, 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 0-5")

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewRecord":
        """Create ReviewRecord from its JSON dict."""
        return cls(
            asin=data.get("asin", ""),
            title=data.get("title", ""),
            content=data.get("content", ""),
            is_vp=data.get("isVP", False),
            is_vine=data.get("isVine", False),
            variant=data.get("variant", ""),
            has_video=data.get("hasVideo", False),
            video_url=data.get("videoUrl"),
            review_url=data.get("reviewUrl", ""),
            author=data.get("author", ""),
            avatar_url=data.get("avatarUrl"),
            country=data.get("country", ""),
            author_url=data.get("authorUrl"),
            influencer_url=data.get("influencerUrl"),
            date=data.get("date", ""),
            rating=data.get("rating", 0)
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "asin": self.asin,
            "title": self.title,
            "content": self.content,
            "isVP": self.is_vp,
            "isVine": self.is_vine,
            "variant": self.variant,
            "hasVideo": self.has_video,
            "videoUrl": self.video_url,
            "reviewUrl": self.review_url,
            "author": self.author,
            "avatarUrl": self.avatar_url,
            "country": self.country,
            "authorUrl": self.author_url,
            "influencerUrl": self.influencer_url,
            "date": self.date,
            "rating": self.rating
        }

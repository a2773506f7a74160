"""
Database Schemas for the Portfolio CMS

Each Pydantic model = one MongoDB collection (lowercased class name).
Request bodies for the write endpoints sit next to the collection they feed:
``*Create`` for POST, ``*Update`` for PUT (id plus only the fields to change).
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

EventStatus = Literal["upcoming", "ongoing", "completed", "cancelled"]
MediaType = Literal["image", "video"]
MediaSource = Literal["local", "youtube"]
InviteStatus = Literal["pending", "completed"]


class IdPayload(BaseModel):
    id: str = Field(..., min_length=1)


# Blog
class Blog(BaseModel):
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    subtitle: str = ""
    content: str = Field(..., min_length=1, description="HTML body")
    image: str = ""
    category: str = "Uncategorized"
    tags: List[str] = []
    author: str = "Admin"
    isPublished: bool = True
    views: int = 0


class BlogCreate(BaseModel):
    title: str = Field(..., min_length=1)
    slug: Optional[str] = None  # generated from the title when missing
    subtitle: Optional[str] = None
    content: str = Field(..., min_length=1)
    image: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = []
    author: Optional[str] = None
    isPublished: bool = True


class BlogUpdate(IdPayload):
    title: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1)
    subtitle: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    author: Optional[str] = None
    isPublished: Optional[bool] = None


# Events
class EventLocation(BaseModel):
    address: str = ""
    city: str = ""
    mapLink: str = ""


def as_utc_naive(value: datetime) -> datetime:
    # Mongo hands datetimes back without tzinfo
    if value.tzinfo is not None:
        return value.replace(tzinfo=None) - value.utcoffset()
    return value


class EventDates(BaseModel):
    @model_validator(mode="after")
    def check_dates(self):
        if self.endDate is not None and as_utc_naive(self.endDate) < as_utc_naive(self.startDate):
            raise ValueError("endDate must not be before startDate")
        return self


class Event(EventDates):
    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str = ""
    image: str = ""
    startDate: datetime
    endDate: Optional[datetime] = None
    location: EventLocation
    price: float = Field(0, ge=0)
    currency: str = "BDT"
    registrationLink: str = ""
    organizer: str = "Admin"
    status: EventStatus = "upcoming"
    extraInfo: dict = {}


class EventCreate(EventDates):
    title: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: str = ""
    image: str = ""
    startDate: datetime
    endDate: Optional[datetime] = None
    location: EventLocation
    price: float = Field(0, ge=0)
    currency: str = "BDT"
    registrationLink: str = ""
    organizer: str = "Admin"
    status: EventStatus = "upcoming"
    extraInfo: dict = {}


class EventUpdate(IdPayload):
    title: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    location: Optional[EventLocation] = None
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    registrationLink: Optional[str] = None
    organizer: Optional[str] = None
    status: Optional[EventStatus] = None
    extraInfo: Optional[dict] = None


# FAQ
class Faq(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    category: str = "General"
    isActive: bool = True


class FaqUpdate(IdPayload):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    isActive: Optional[bool] = None


# Media gallery
class Media(BaseModel):
    type: MediaType = "image"
    url: str = Field(..., min_length=1)
    thumbnail: str = ""
    title: str = ""
    description: str = ""
    category: str = "General"
    source: MediaSource = "local"


class MediaCreate(BaseModel):
    type: MediaType = "image"
    url: str = Field(..., min_length=1)
    thumbnail: str = ""
    title: str = ""
    description: str = ""
    category: str = "General"


class MediaUpdate(IdPayload):
    type: Optional[MediaType] = None
    url: Optional[str] = Field(None, min_length=1)
    thumbnail: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None


# Businesses / clients worked with
class Business(BaseModel):
    name: str = Field(..., min_length=1)
    logo: str = Field(..., min_length=1)  # image url
    website: str = ""
    role: str = ""
    duration: str = ""
    description: str = ""


class BusinessUpdate(IdPayload):
    name: Optional[str] = Field(None, min_length=1)
    logo: Optional[str] = Field(None, min_length=1)
    website: Optional[str] = None
    role: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None


# Hero banners (written through multipart forms, see content.py)
class Banner(BaseModel):
    title: str = Field(..., min_length=1)
    desktopImage: str = Field(..., min_length=1)
    mobileImage: str = ""
    link: str = ""
    isActive: bool = True
    order: int = 0


# Testimonials
class Review(BaseModel):
    name: str = Field(..., min_length=1)
    image: str = ""
    designation: str = ""
    rating: int = Field(..., ge=1, le=5)
    review: str = Field(..., min_length=1)
    isActive: bool = True
    inviteId: Optional[str] = None


class ReviewUpdate(IdPayload):
    name: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    designation: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    review: Optional[str] = Field(None, min_length=1)
    isActive: Optional[bool] = None


class Reviewinvite(BaseModel):
    clientName: str = Field(..., min_length=1)
    designation: str = ""
    status: InviteStatus = "pending"


class ReviewInviteCreate(BaseModel):
    clientName: str = Field(..., min_length=1)
    designation: str = ""


# About (singleton)
class SocialLink(BaseModel):
    id: Optional[str] = None
    platform: str
    url: str = ""


class TeamMember(BaseModel):
    id: Optional[str] = None
    name: str = ""
    role: str = ""
    image: str = ""
    bio: str = ""
    socials: List[SocialLink] = []


class Experience(BaseModel):
    id: Optional[str] = None
    role: str = ""
    company: str = ""
    year: str = ""
    description: str = ""


class About(BaseModel):
    name: Optional[str] = None
    designation: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    imageUrl: Optional[str] = None
    skills: Optional[List[str]] = None
    experiences: Optional[List[Experience]] = None
    team: Optional[List[TeamMember]] = None

    @field_validator("skills")
    @classmethod
    def unique_skills(cls, v):
        if v is None:
            return v
        seen = []
        for skill in v:
            skill = skill.strip()
            if skill and skill not in seen:
                seen.append(skill)
        return seen


# Contact details (singleton)
class Contact(BaseModel):
    siteName: Optional[str] = None
    logo: Optional[str] = None
    email: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    social: Optional[Dict[str, str]] = None


# Contact form relayed over SMTP
class EmailMessagePayload(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)

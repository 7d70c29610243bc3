"""
Database Schemas

MongoDB document shapes for the site content admin, as Pydantic models.
These schemas validate every payload before it is written.

Singleton documents (one per collection, addressed by a fixed _id):
- SharedSettings -> "shared_data" collection
- HomePage -> "homepage" collection
- AboutUs -> "aboutus" collection
- SiteContent -> "sitecontent" collection

Regular collection:
- Product -> "products" collection

Singleton models have every top-level field optional because a write is a
partial document: only the fields present in the payload are replaced.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TITLE_MAX = 200
TEXT_MAX = 5000


# Keys the server owns; a form that posts back a fetched document may carry them
SERVER_KEYS = ("id", "_id", "__v", "created_at", "updated_at", "createdAt", "updatedAt")


class Document(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_server_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and any(key in data for key in SERVER_KEYS):
            return {k: v for k, v in data.items() if k not in SERVER_KEYS}
        return data


# -----------------------------
# Shared building blocks
# -----------------------------
class MediaReference(Document):
    """Pointer to an image hosted by the external image service."""
    thumbnail: Optional[str] = Field(None, max_length=2048, description="Thumbnail URL")
    file: Optional[str] = Field(None, max_length=2048, description="Full-size file URL")
    file_id: Optional[str] = Field(None, alias="fileId", max_length=256, description="Image host handle used for deletion")


class KeyValue(Document):
    key: Optional[str] = Field(None, max_length=TITLE_MAX)
    value: Optional[str] = Field(None, max_length=TEXT_MAX)


# -----------------------------
# Shared settings (navigation, footer, SEO)
# -----------------------------
class NavChild(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    link: Optional[str] = Field(None, max_length=2048)


class NavItem(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    link: Optional[str] = Field(None, max_length=2048)
    children: List[NavChild] = Field(default_factory=list)


class Navigation(Document):
    logo: Optional[MediaReference] = None
    items: List[NavItem] = Field(default_factory=list)


class SocialLink(Document):
    icon: Optional[str] = Field(None, max_length=TITLE_MAX, description="Icon name")
    link: Optional[str] = Field(None, max_length=2048)


class Footer(Document):
    copyright: Optional[str] = Field(None, max_length=TITLE_MAX, description="Copyright line")
    contactoffice: List[KeyValue] = Field(default_factory=list, description="Office contact rows")
    contactfactory: List[KeyValue] = Field(default_factory=list, description="Factory contact rows")
    sociallinks: List[SocialLink] = Field(default_factory=list)


class SharedSettings(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX, description="Site title")
    description: Optional[str] = Field(None, max_length=TEXT_MAX, description="Meta description")
    keywords: Optional[str] = Field(None, max_length=TEXT_MAX, description="Meta keywords")
    ctatext: Optional[str] = Field(None, max_length=TITLE_MAX, description="Call-to-action label")
    ctalink: Optional[str] = Field(None, max_length=2048, description="Call-to-action target")
    favicon: Optional[MediaReference] = None
    nav: Optional[Navigation] = None
    footer: Optional[Footer] = None


# -----------------------------
# Home page
# -----------------------------
class Slider(Document):
    title: str = Field("", max_length=TITLE_MAX)
    subtitle: str = Field("", max_length=TEXT_MAX)
    images: List[MediaReference] = Field(default_factory=list)
    background: Optional[MediaReference] = None


class AboutBlock(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=TEXT_MAX)


class ProductsBlock(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=TEXT_MAX)
    products: List[str] = Field(default_factory=list, description="Featured product ids, in display order")

    @field_validator("products", mode="before")
    @classmethod
    def unpopulate(cls, v: Any) -> Any:
        # accept the populated records the homepage GET returns
        if isinstance(v, list):
            return [item.get("id") if isinstance(item, dict) else item for item in v]
        return v

    @field_validator("products")
    @classmethod
    def check_object_ids(cls, v: List[str]) -> List[str]:
        for product_id in v:
            if not ObjectId.is_valid(product_id):
                raise ValueError(f"Invalid product id: {product_id}")
        return v


class Stat(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    value: Optional[str] = Field(None, max_length=TITLE_MAX)


class StatsBlock(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    image: Optional[MediaReference] = None
    stats: List[Stat] = Field(default_factory=list)


class Testimonial(Document):
    name: str = Field("", max_length=TITLE_MAX)
    designation: str = Field("", max_length=TITLE_MAX)
    comment: str = Field("", max_length=TEXT_MAX)


class VideoBlock(Document):
    thumbnail: Optional[MediaReference] = None
    link: Optional[str] = Field(None, max_length=2048)


class HomePage(Document):
    sliders: Optional[List[Slider]] = None
    about: Optional[AboutBlock] = None
    products: Optional[ProductsBlock] = None
    stats: Optional[StatsBlock] = None
    testimonials: Optional[List[Testimonial]] = None
    video: Optional[VideoBlock] = None


# -----------------------------
# About us page
# -----------------------------
class AboutItem(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=TEXT_MAX)
    hash: Optional[str] = Field(None, max_length=TITLE_MAX, description="Anchor used for in-page links")
    image: Optional[MediaReference] = None


class TeamMember(Document):
    name: Optional[str] = Field(None, max_length=TITLE_MAX)
    designation: Optional[str] = Field(None, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=TEXT_MAX)


class TeamBlock(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=TEXT_MAX)
    members: List[TeamMember] = Field(default_factory=list)


class AboutUs(Document):
    title: Optional[str] = Field(None, max_length=TITLE_MAX)
    background: Optional[MediaReference] = None
    banner: Optional[MediaReference] = None
    items: Optional[List[AboutItem]] = None
    team: Optional[TeamBlock] = None


class SiteContent(Document):
    """Free-form content blob read by the public `get-data` endpoint."""
    content: Optional[Dict[str, Any]] = None


# -----------------------------
# Products
# -----------------------------
class ProductAttribute(Document):
    key: Optional[str] = Field(None, max_length=TITLE_MAX)
    value: Optional[str] = Field(None, max_length=TEXT_MAX)


class ProductCreate(Document):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX, description="Product title")
    description: Optional[str] = Field(None, max_length=TEXT_MAX, description="Product description")
    images: List[MediaReference] = Field(default_factory=list, description="Gallery images, in display order")
    attributes: List[ProductAttribute] = Field(default_factory=list, description="Specification rows")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title must not be blank")
        return v


class ProductUpdate(Document):
    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX)
    description: Optional[str] = Field(None, max_length=TEXT_MAX)
    images: Optional[List[MediaReference]] = None
    attributes: Optional[List[ProductAttribute]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> str:
        # only runs when the payload carries a title, null included
        if v is None or not v.strip():
            raise ValueError("Title must not be blank")
        return v

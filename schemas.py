"""
Database Schemas for the HRMS backend

Each Pydantic model describes the documents of one MongoDB collection.
Superadmin collections ("packages", "companies") live in the superadmin
database; tenant collections live in one database per company.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ---------------------- Superadmin ----------------------

class Plan(BaseModel):
    """
    Subscription plans sold to companies
    Collection name: "packages"
    """
    model_config = ConfigDict(extra="allow")

    planName: str
    planType: str = Field(..., description="Monthly or Yearly")
    price: float = Field(..., ge=0)
    planPosition: str
    planCurrency: str
    planCurrencytype: str
    discountType: str
    discount: float = Field(..., ge=0)
    limitationsInvoices: int
    maxCustomers: int
    product: int
    supplier: int
    planModules: List[str]
    accessTrial: bool
    trialDays: int = Field(..., ge=0)
    isRecommended: bool
    status: str = Field(..., description="Active or Inactive")
    description: str
    logo: str


class SuperadminCompany(BaseModel):
    """
    Companies registered on the platform
    Collection name: "companies"
    """
    model_config = ConfigDict(extra="allow")

    name: str
    email: EmailStr
    domain: str = Field(..., description="Subdomain of the company account")
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    status: str = "Active"
    plan_id: Optional[str] = Field(None, description="Package _id, copied at write time")
    plan_name: Optional[str] = None
    plan_type: Optional[str] = None
    currency: Optional[str] = None
    logo: Optional[str] = None


class UpdateRoleRequest(BaseModel):
    userId: str
    role: str
    companyId: Optional[str] = None


# ---------------------- Tenant CRM ----------------------

class SocialLinks(BaseModel):
    facebook: str = ""
    twitter: str = ""
    linkedin: str = ""
    skype: str = ""
    whatsapp: str = ""
    instagram: str = ""


class TenantCompany(SocialLinks):
    """
    Companies tracked by a tenant's CRM
    Collection name: "companies" (tenant database)
    """
    name: str
    email: str = ""
    phone: str = ""
    phone2: str = ""
    fax: str = ""
    location: str = ""
    rating: float = 0
    ownerName: str = ""
    image: str = "company-01.svg"
    status: str = "Active"
    website: str = ""
    address: str = ""
    country: str = ""
    state: str = ""
    city: str = ""
    zipcode: str = ""
    industry: str = ""
    source: str = ""
    currency: str = ""
    language: str = ""
    about: str = ""
    tags: List[str] = []
    deals: List[str] = []


class Contact(SocialLinks):
    """
    Collection name: "contacts" (tenant database)
    """
    firstName: str
    lastName: str = ""
    jobTitle: str = ""
    companyName: str = ""
    email: str = ""
    phone: str = ""
    phone2: str = ""
    fax: str = ""
    rating: float = 0
    ownerName: str = ""
    image: str = "contact-01.svg"
    status: str = "Active"
    address: str = ""
    country: str = ""
    state: str = ""
    city: str = ""
    zipcode: str = ""
    industry: str = ""
    source: str = ""
    currency: str = ""
    language: str = ""
    about: str = ""
    dob: str = ""
    tags: List[str] = []
    deals: List[str] = []


class Lead(BaseModel):
    """
    Collection name: "leads" (tenant database)

    stage is free text (Contacted, Not Contacted, Closed, Lost, Opportunity);
    transitions are not enforced.
    """
    name: str
    company: str = ""
    email: str = ""
    phone: str = ""
    value: float = Field(0, ge=0)
    stage: str = "Not Contacted"
    source: str = ""
    owner: str = ""
    tags: List[str] = []
    priority: str = "Medium"
    status: str = "Active"
    country: str = ""
    lostReason: str = ""


class Activity(BaseModel):
    """
    Collection name: "activities" (tenant database)
    """
    title: str
    activityType: Literal["Calls", "Emails", "Meeting", "Task"] = "Task"
    dueDate: Optional[datetime] = None
    reminder: Optional[str] = None
    owner: str = ""
    description: str = ""
    status: str = "Active"


# ---------------------- Social feed ----------------------

class PostImage(BaseModel):
    url: str
    filename: str = ""
    public_id: str = ""


class Post(BaseModel):
    """
    Company-internal social feed posts
    Collection name: "socialFeeds" (tenant database)
    Likes, comments, shares and bookmarks are embedded arrays.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=10000)
    images: List[PostImage] = []
    tags: List[str] = []
    location: str = ""
    isPublic: bool = True


class PostUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: Optional[str] = Field(None, min_length=1, max_length=10000)
    images: Optional[List[PostImage]] = None
    tags: Optional[List[str]] = None
    location: Optional[str] = None
    isPublic: Optional[bool] = None


class CommentIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=2000)


class ReplyIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=1000)

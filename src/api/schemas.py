from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Users

class UserCreate(CamelModel):
    firebase_uid: str = Field(..., description="Opaque user id issued by the identity provider")
    email: str = Field(..., description="Email address reported by the identity provider")
    display_name: Optional[str] = Field(None, description="Display name")


class User(UserCreate):
    id: int
    created_at: str


# Posts

class PostPayload(CamelModel):
    content: str = Field(..., description="Generated post text")
    platform: str = Field(..., description="Target platform, e.g. twitter or linkedin")
    tone: str = Field(..., description="Tone used for generation")
    idea: Optional[str] = Field(None, description="Idea the post was generated from")
    has_emojis: bool = Field(False, description="Emojis were requested")
    has_hashtags: bool = Field(False, description="Hashtags were requested")
    has_suggested_images: bool = Field(False, description="Image suggestions were requested")


class PostCreate(PostPayload):
    user_id: int = Field(..., description="Owner user id")


class Post(PostCreate):
    id: int
    created_at: str


# Generation

class GeneratePostRequest(CamelModel):
    idea: Optional[str] = Field(None, description="Optional idea; an original topic is chosen when absent")
    platform: str = Field(..., description="twitter, linkedin, facebook, instagram or threads")
    tone: str = Field(..., description="friendly, professional, funny, bold, inspiring or casual")
    add_emojis: bool = Field(..., description="Ask for emojis")
    add_hashtags: bool = Field(..., description="Ask for 2-5 hashtags")
    suggest_images: bool = Field(..., description="Ask for image suggestions")


class GeneratePostResponse(CamelModel):
    content: str
    platform: str
    tone: str


# Misc

class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    message: str
    storage: str

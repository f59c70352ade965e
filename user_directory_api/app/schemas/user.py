"""
Pydantic models for user data.

Defines schemas for registering users, patching them and reading
them back.  Passwords are accepted on input but never returned.  The
user background is a tagged union (``color`` or ``image``); a bare
string supplied by a client is normalised to a colour once, when the
payload is parsed, so the rest of the code never inspects its shape.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class Social(BaseModel):
    """Link to a social network profile."""

    name: str = Field(..., examples=["VK"])
    url: str = Field(..., examples=["https://vk.com/stylesams"])


class ColorBackground(BaseModel):
    type: Literal["color"] = "color"
    value: str = Field(..., examples=["#ff8800"])


class ImageBackground(BaseModel):
    type: Literal["image"] = "image"
    reference: str = Field(..., description="Opaque reference to a stored image")


Background = Annotated[Union[ColorBackground, ImageBackground], Field(discriminator="type")]


def normalize_background(value):
    """Turn a bare string into a ``ColorBackground`` payload."""
    if isinstance(value, str):
        return {"type": "color", "value": value}
    return value


class UserBase(BaseModel):
    name: str = Field(..., examples=["Сэм"])
    last_name: str = Field("", examples=["Булатов"])
    email: Optional[str] = Field(None, examples=["stylesam@yandex.ru"])
    phone: Optional[str] = Field(None, examples=["+79991234567"])
    socials: List[Social] = Field(default_factory=list)
    avatar: Optional[str] = Field(None, description="Opaque reference to a stored avatar")
    background: Optional[Background] = None

    @field_validator("background", mode="before")
    @classmethod
    def _normalize_background(cls, v):
        return normalize_background(v)


class UserCreate(UserBase):
    """Schema for registering a user.

    ``login``, ``password`` and ``name`` are required.  The role is
    never taken from the registration payload; new users always get
    the default role.
    """

    login: str = Field(..., examples=["stylesam"])
    password: str = Field(..., examples=["strongpassword"])


class UserUpdate(BaseModel):
    """Partial update of a user.

    Every field is optional; only the fields actually sent by the
    client (``model_dump(exclude_unset=True)``) are considered changed.
    """

    login: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    socials: Optional[List[Social]] = None
    avatar: Optional[str] = None
    background: Optional[Background] = None
    role_id: Optional[int] = None

    @field_validator("background", mode="before")
    @classmethod
    def _normalize_background(cls, v):
        return normalize_background(v)

    def changed_fields(self) -> set:
        return set(self.model_dump(exclude_unset=True))


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    login: str
    role_id: int
    friends: List[int] = Field(default_factory=list)
    created_at: str
    updated_at: str

    model_config = {
        "from_attributes": True,
    }

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()


class UserLogin(BaseModel):
    login: str
    password: str

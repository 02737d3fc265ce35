"""Pydantic schemas for account requests and sanitized responses.

Request fields are optional at the schema level so a missing field surfaces
as the service's "Please fill all required fields" error (400) rather than a
generic body validation failure.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    fullname: str | None = Field(None, description="Full name of the account holder.")
    phonenumber: str | None = Field(None, description="Contact phone number.")
    email: str | None = Field(None, description="Login email; unique across accounts.")
    password: str | None = Field(None, description="Plaintext password (hashed before storage).")
    companyname: str | None = Field(None, description="Optional company name.")
    isagency: bool | None = Field(False, description="Whether the account is an agency.")


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AccountView(BaseModel):
    """Account projection returned after registration.

    Never contains the password hash or inline image bytes.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    fullname: str = Field(validation_alias="full_name")
    phonenumber: str = Field(validation_alias="phone_number")
    email: str
    companyname: str | None = Field(None, validation_alias="company_name")
    isagency: bool = Field(False, validation_alias="is_agency")
    profile_image_url: str | None = None
    profile_image_mimetype: str | None = None


class LoginView(BaseModel):
    """Minimal account projection returned after a successful login."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    fullname: str = Field(validation_alias="full_name")
    profile_image_url: str | None = None
    profile_image_mimetype: str | None = None


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    user: AccountView


class LoginResponse(BaseModel):
    message: str = "Logged in successfully"
    user: LoginView


class UploadProfilePictureResponse(BaseModel):
    message: str = "Profile picture uploaded successfully"
    profile_image_mimetype: str
    profile_image_url: str | None = Field(
        None,
        description="Reference to the stored file (filesystem backend only).",
    )

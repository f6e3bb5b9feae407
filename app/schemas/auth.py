"""Authentication schemas for Supabase JWT tokens."""

from typing import Optional, Dict, Any

from pydantic import BaseModel, Field, EmailStr


class JWTClaims(BaseModel):
    """JWT claims extracted from a Supabase access token."""

    sub: str = Field(..., description="Subject (user ID)")
    email: EmailStr = Field(..., description="User email")
    role: str = Field(default="authenticated", description="User role")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    iss: str = Field(..., description="Token issuer")

    aud: Optional[str] = Field(None, description="Audience")
    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    session_id: Optional[str] = Field(None, description="Session ID")


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    id: str = Field(..., description="Supabase user ID")
    email: EmailStr = Field(..., description="User email")
    role: str = Field(default="user", description="User role")

    full_name: Optional[str] = Field(None, description="User's full name")
    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")

    @classmethod
    def from_claims(cls, claims: JWTClaims) -> "CurrentUser":
        """Build the request principal from verified token claims."""
        user_metadata = claims.user_metadata or {}
        return cls(
            id=claims.sub,
            email=claims.email,
            role=claims.role or "user",
            full_name=user_metadata.get("full_name") or user_metadata.get("name"),
            app_metadata=claims.app_metadata,
            user_metadata=claims.user_metadata,
        )

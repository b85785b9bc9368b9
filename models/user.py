"""
Provides the User model for the application's database schema.

Users are owned by the hosted auth provider; this table mirrors the subset of
the identity the planner needs and anchors conversations, authored rows and
audit entries.

Attributes
----------
auth_user_id : sqlalchemy.Column
    Subject identifier issued by the auth provider (the JWT ``sub`` claim).
email : sqlalchemy.Column
    The email address of the user.
full_name : sqlalchemy.Column
    Optional display name.
is_active : sqlalchemy.Column
    A boolean indicating if the user is active. Defaults to `True`.
"""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar auth_user_id: Unique identifier for the user provided by the auth provider.
    :type auth_user_id: str
    :ivar email: Email address of the user.
    :type email: str
    :ivar full_name: Display name of the user. This is optional.
    :type full_name: str
    :ivar is_active: Indicates whether the user account is active.
    :type is_active: bool
    """

    __tablename__ = "users"

    auth_user_id = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), nullable=True)
    full_name = Column(String(255))
    is_active = Column(Boolean, default=True)

    # Relationships
    chat_conversations = relationship("ChatConversation", back_populates="user", cascade="all, delete-orphan")

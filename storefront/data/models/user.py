# storefront/data/models/user.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.enums import UserRole


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=True)
    phone_number = Column(String(20), unique=True, nullable=True)
    email = Column(String(255), unique=True, nullable=True)

    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    is_verified = Column(Boolean, nullable=False, default=False)
    fcm_token = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    addresses = relationship(
        "AddressModel",
        back_populates="user",
        cascade="all, delete-orphan",
    )

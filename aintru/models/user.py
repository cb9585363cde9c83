from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, func
from aintru.database import Base
from aintru.models.enums import AuthProvider, UserType


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    # OAuth users sign in without a phone number
    phone = Column(String, unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=True)

    provider = Column(Enum(AuthProvider), nullable=False, default=AuthProvider.LOCAL)
    provider_id = Column(String, index=True, nullable=True)
    avatar = Column(String, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=True)

    surname = Column(String, nullable=True)
    education_level = Column(String, nullable=True)
    user_type = Column(Enum(UserType), nullable=False, default=UserType.STUDENT)
    is_student = Column(Boolean, nullable=True)

    last_activity = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

"""Database table definitions for the post metadata index"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, BigInteger, Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class Post(SQLModel, table=True):
    """Cached header of one post file; the file itself stays the source of truth"""
    __tablename__ = "posts"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    slug: str = Field(..., index=True, nullable=False)
    path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    tags: Optional[List[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    posted: int = Field(default=0, sa_column=Column(BigInteger, nullable=False, index=True))
    summary: str = Field(default="", sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    indexed_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))

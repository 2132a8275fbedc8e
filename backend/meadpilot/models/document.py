from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from meadpilot.core.database import Base


class StoredDocument(Base):
    __tablename__ = "stored_documents"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    collection_path: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

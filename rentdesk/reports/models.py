from typing import Optional

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentdesk.common.base_models import TimestampMixin, UUIDBase


class SavedReport(UUIDBase, TimestampMixin):
    __tablename__ = "saved_reports"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Wire form of the ReportConfiguration (camelCase keys)
    configuration: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="system")

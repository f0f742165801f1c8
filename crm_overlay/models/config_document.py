from sqlalchemy import Column, String, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import JSONB
from crm_overlay.models.base import Base
from sqlalchemy.sql import func


class ConfigDocument(Base):
    """One admin-editable JSON configuration document.

    The service keeps exactly two rows, ``risk_rules`` (a JSON array of
    rules) and ``priority_scoring`` (components, thresholds and role
    overrides).  Rows are seeded from ``crm_overlay.core.default_config``
    on first read and replaced wholesale on every admin write.
    """

    __tablename__ = "config_documents"
    key = Column(String(64), primary_key=True)
    value = Column(JSONB, nullable=False)
    modified_by = Column(String(255), nullable=False, server_default="system")
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "key IN ('risk_rules', 'priority_scoring')",
            name="ck_config_document_key",
        ),
    )

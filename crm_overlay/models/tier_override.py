from sqlalchemy import Column, String, Text, DateTime, CheckConstraint
from crm_overlay.models.base import Base
from sqlalchemy.sql import func


class AccountTierOverride(Base):
    """Manual tier pinned to an account by an administrator.

    When present, the orchestrated evaluation reports this tier instead
    of the one derived from the composite score.
    """

    __tablename__ = "account_tier_overrides"
    account_id = Column(String(18), primary_key=True)
    tier = Column(String(20), nullable=False)
    reason = Column(Text)
    overridden_by = Column(String(255), nullable=False)
    overridden_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "tier IN ('hot', 'warm', 'cool', 'cold')",
            name="ck_account_tier_override_tier",
        ),
    )

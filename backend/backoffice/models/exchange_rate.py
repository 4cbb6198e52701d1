"""
Exchange rate cache model.
"""
from sqlalchemy import Column, String, Date, Numeric, UniqueConstraint
from backoffice.db.base import BaseModel


class ExchangeRate(BaseModel):
    """Daily rate cache: 1 from_currency = rate to_currency.

    Rows are upserted on (from_currency, to_currency, rate_date) and never
    deleted. This is a cache, not an audit trail.
    """
    __tablename__ = "exchange_rates"

    from_currency = Column(String(3), nullable=False, index=True)
    to_currency = Column(String(3), nullable=False, index=True)
    rate_date = Column(Date, nullable=False, index=True)
    rate = Column(Numeric(18, 8), nullable=False)
    source = Column(String(50), nullable=False, default="exchangerate-api")

    # Unique constraint: one rate per currency pair per date
    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", "rate_date", name="uq_currency_pair_date"),
    )

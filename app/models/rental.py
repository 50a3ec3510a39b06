# models/rental.py
from sqlalchemy import Column, Integer, String, Numeric, Date, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Rental(Base):
    __tablename__ = "rentals"

    rental_id = Column(Integer, primary_key=True, autoincrement=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    monthly_rent = Column(Numeric(14, 2), nullable=False)
    deposit = Column(Numeric(14, 2), nullable=True)
    status = Column(String(20), nullable=False, default="Active")
    notes = Column(Text, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.property_id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.client_id"), nullable=False)
    agent_id = Column(Integer, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="chk_rental_dates"),
        CheckConstraint("monthly_rent > 0", name="chk_rental_monthly_rent"),
        CheckConstraint("deposit IS NULL OR deposit >= 0", name="chk_rental_deposit"),
        CheckConstraint(
            "status IN ('Active','Overdue','Delinquent','Terminated')",
            name="chk_rental_status"
        ),
        Index("idx_rental_property", "property_id"),
        Index("idx_rental_status", "status"),
        Index("idx_rental_end_date", "end_date"),
    )

    # Relationships
    property = relationship("Property", back_populates="rentals")
    client = relationship("Client", back_populates="rentals")
    agent = relationship("Agent", back_populates="rentals")

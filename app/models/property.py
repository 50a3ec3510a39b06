# models/property.py
from sqlalchemy import Column, Integer, String, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Property(Base):
    __tablename__ = "properties"

    property_id = Column(Integer, primary_key=True, autoincrement=True)
    property_type = Column(String(30), nullable=False)  # House, Apartment, Commercial, Office, Lot
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    availability_state = Column(String(20), nullable=False, default="Available")

    __table_args__ = (
        CheckConstraint(
            "availability_state IN ('Available','Sold','Rented')",
            name="chk_property_availability_state"
        ),
        Index("idx_property_state", "availability_state"),
        Index("idx_property_city", "city"),
    )

    # Relationships
    sales = relationship("Sale", back_populates="property")
    rentals = relationship("Rental", back_populates="property")
    visits = relationship("Visit", back_populates="property")
    contracts = relationship("Contract", back_populates="property")

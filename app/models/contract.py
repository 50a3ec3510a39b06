# models/contract.py
from sqlalchemy import Column, Integer, String, Date, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Contract(Base):
    __tablename__ = "contracts"

    contract_id = Column(Integer, primary_key=True, autoincrement=True)
    contract_type = Column(String(20), nullable=False)  # Sale, Rental
    status = Column(String(20), nullable=False, default="Draft")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.property_id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.client_id"), nullable=False)

    __table_args__ = (
        CheckConstraint("contract_type IN ('Sale','Rental')", name="chk_contract_type"),
        CheckConstraint(
            "status IN ('Draft','Active','Finished','Cancelled')",
            name="chk_contract_status"
        ),
        Index("idx_contract_property_client", "property_id", "client_id", "contract_type"),
    )

    # Relationships
    property = relationship("Property", back_populates="contracts")
    client = relationship("Client", back_populates="contracts")

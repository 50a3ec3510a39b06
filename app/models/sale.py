# models/sale.py
from sqlalchemy import Column, Integer, Numeric, Date, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Sale(Base):
    __tablename__ = "sales"

    sale_id = Column(Integer, primary_key=True, autoincrement=True)
    sale_date = Column(Date, nullable=False)
    value = Column(Numeric(14, 2), nullable=False)
    commission = Column(Numeric(14, 2), nullable=True)
    notes = Column(Text, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.property_id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.client_id"), nullable=False)
    agent_id = Column(Integer, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        CheckConstraint("value > 0", name="chk_sale_value"),
        CheckConstraint("commission IS NULL OR commission >= 0", name="chk_sale_commission"),
        Index("idx_sale_property", "property_id"),
        Index("idx_sale_client", "client_id"),
        Index("idx_sale_date", "sale_date"),
    )

    # Relationships
    property = relationship("Property", back_populates="sales")
    client = relationship("Client", back_populates="sales")
    agent = relationship("Agent", back_populates="sales")

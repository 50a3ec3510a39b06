# models/visit.py
from sqlalchemy import Column, Integer, String, Date, Time, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Visit(Base):
    __tablename__ = "visits"

    visit_id = Column(Integer, primary_key=True, autoincrement=True)
    visit_date = Column(Date, nullable=False)
    visit_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default="Scheduled")
    interest_rating = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.property_id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.client_id"), nullable=False)
    agent_id = Column(Integer, ForeignKey("agents.agent_id"), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('Scheduled','Rescheduled','Completed','Cancelled')",
            name="chk_visit_status"
        ),
        Index("idx_visit_agent_slot", "agent_id", "visit_date", "visit_time"),
        Index("idx_visit_date", "visit_date"),
        Index("idx_visit_status", "status"),
    )

    # Relationships
    property = relationship("Property", back_populates="visits")
    client = relationship("Client", back_populates="visits")
    agent = relationship("Agent", back_populates="visits")

# models/agent.py
from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Agent(Base):
    __tablename__ = "agents"

    agent_id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    sales = relationship("Sale", back_populates="agent")
    rentals = relationship("Rental", back_populates="agent")
    visits = relationship("Visit", back_populates="agent")

# models/client.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Client(Base):
    __tablename__ = "clients"

    client_id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    # Relationships
    sales = relationship("Sale", back_populates="client")
    rentals = relationship("Rental", back_populates="client")
    visits = relationship("Visit", back_populates="client")
    contracts = relationship("Contract", back_populates="client")

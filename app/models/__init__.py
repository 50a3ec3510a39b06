from .property import Property
from .client import Client
from .agent import Agent
from .sale import Sale
from .rental import Rental
from .visit import Visit
from .contract import Contract

__all__ = ["Property", "Client", "Agent", "Sale", "Rental", "Visit", "Contract"]

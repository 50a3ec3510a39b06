# app/crud/contract.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.constants import ContractType
from app.models.contract import Contract


# --- Insert Contract ---
async def create_contract(db: AsyncSession, contract_data: dict) -> Contract:
    contract = Contract(**contract_data)
    db.add(contract)
    await db.flush()
    return contract


# --- Contracts tying a client to a property ---
async def count_contracts_for(
    db: AsyncSession,
    property_id: int,
    client_id: int,
    contract_type: ContractType,
) -> int:
    result = await db.execute(
        select(func.count(Contract.contract_id)).where(
            Contract.property_id == property_id,
            Contract.client_id == client_id,
            Contract.contract_type == contract_type.value,
        )
    )
    return result.scalar_one()

"""
Data models for the AnchorLayer SDK.
"""
from datetime import datetime
from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

TX_SUCCESS = 1


class TransactionRequest(BaseModel):
    """
    Unsigned transaction for one logical anchor submission.

    The nonce is fixed when the request is built; the fee fields are
    rewritten on every attempt.
    """
    to: str
    data: str
    nonce: int
    from_address: str = Field(..., alias="from")
    gas_limit: Optional[int] = Field(None, alias="gasLimit")
    gas_price: Optional[int] = Field(None, alias="gasPrice")
    max_fee_per_gas: Optional[int] = Field(None, alias="maxFeePerGas")
    max_priority_fee_per_gas: Optional[int] = Field(None, alias="maxPriorityFeePerGas")

    class Config:
        populate_by_name = True

    @property
    def is_fee_market(self) -> bool:
        return self.max_fee_per_gas is not None

    @property
    def fee_per_gas(self) -> Optional[int]:
        """Highest price per gas unit this request may pay"""
        if self.max_fee_per_gas is not None:
            return self.max_fee_per_gas
        return self.gas_price

    def tx_cost(self) -> Optional[int]:
        """
        Maximum cost of the transaction in wei.

        Returns:
            gas limit times fee per gas, or None if the request is not fully priced
        """
        if self.gas_limit is None or self.fee_per_gas is None:
            return None
        return self.gas_limit * self.fee_per_gas

    def to_log_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FeeEstimate(BaseModel):
    """Current network fee conditions, legacy or fee-market style"""
    gas_price: Optional[int] = Field(None, alias="gasPrice")
    max_fee_per_gas: Optional[int] = Field(None, alias="maxFeePerGas")
    max_priority_fee_per_gas: Optional[int] = Field(None, alias="maxPriorityFeePerGas")

    class Config:
        populate_by_name = True

    @property
    def is_fee_market(self) -> bool:
        return self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None


class TransactionResponse(BaseModel):
    """Result of a broadcast, before confirmation"""
    hash: str
    chain_id: int = Field(..., alias="chainId")
    block_number: Optional[int] = Field(None, alias="blockNumber")
    block_hash: Optional[str] = Field(None, alias="blockHash")
    from_address: str = Field(..., alias="from")
    raw_data: str = Field("0x", alias="rawData")

    class Config:
        populate_by_name = True


class TransactionReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int

    class Config:
        populate_by_name = True

    @property
    def succeeded(self) -> bool:
        return self.status == TX_SUCCESS


class BlockHeader(BaseModel):
    number: int
    hash: str
    timestamp: int


class AnchorTransaction(BaseModel):
    """Final record of a confirmed anchor transaction"""
    chain_id: str = Field(..., alias="chainId")
    transaction_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_timestamp: datetime = Field(..., alias="blockTimestamp")

    class Config:
        populate_by_name = True
        frozen = True

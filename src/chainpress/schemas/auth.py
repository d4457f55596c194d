"""Wallet sign-in schemas."""

from pydantic import AliasChoices, BaseModel, Field


class NonceRequest(BaseModel):
    """Request a challenge nonce for a wallet address."""

    address: str = Field(..., description="0x-prefixed 20-byte wallet address")


class NonceResponse(BaseModel):
    success: bool = True
    nonce: str = Field(..., description="Single-use value to embed in the signed message")


class VerifyRequest(BaseModel):
    """Signed challenge submitted for verification."""

    address: str = Field("", description="Wallet address claiming the signature")
    signature: str = Field("", description="Hex personal_sign signature over `message`")
    nonce: str = Field("", description="Nonce previously issued for `address`")
    chain_id: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("chain_id", "chainId"),
        description="Chain id reported by the wallet transport",
    )
    message: str = Field("", description="Exact text that was signed")


class VerifyResponse(BaseModel):
    success: bool = True
    token: str = Field(..., description="Opaque bearer session token")
    user_id: int

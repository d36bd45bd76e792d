from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    identifier: str = Field(min_length=1, max_length=100)
    full_name: Optional[str] = None

    # opening balances
    points_latam: int = Field(default=0, ge=0)
    points_smiles: int = Field(default=0, ge=0)
    points_livelo: int = Field(default=0, ge=0)
    points_esfera: int = Field(default=0, ge=0)


class AccountOut(BaseModel):
    id: UUID
    team: str
    identifier: str
    full_name: Optional[str] = None

    points_latam: int
    points_smiles: int
    points_livelo: int
    points_esfera: int

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

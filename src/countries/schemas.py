from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

class CountryCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 code")
    name: str = Field(..., min_length=1)
    flag_emoji: Optional[str] = None

    @validator("code")
    def normalize_code(cls, v):
        if not v.isalpha():
            raise ValueError("Country code must be two letters")
        return v.upper()

class Country(BaseModel):
    id: int
    code: str
    name: str
    flag_emoji: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CountryStats(BaseModel):
    code: str
    name: str
    flag_emoji: Optional[str] = None
    available_tickets: int

class AirlineCreate(BaseModel):
    name: str = Field(..., min_length=1)
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)

    @validator("country_code")
    def normalize_code(cls, v):
        return v.upper() if v else v

class Airline(BaseModel):
    id: int
    name: str
    country_code: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

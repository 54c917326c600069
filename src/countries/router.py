from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from src.database import get_db
from src.auth import permissions
from src.auth.dependencies import get_current_user, require_capability
from src.countries.schemas import Airline, AirlineCreate, Country, CountryCreate, CountryStats
from src.countries.service import CountryService

router = APIRouter(dependencies=[Depends(get_current_user)])

@router.get("/", response_model=List[Country])
def get_countries(db: Session = Depends(get_db)):
    """List countries ordered by name"""
    return CountryService.get_countries(db)

@router.post(
    "/",
    response_model=Country,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_capability(permissions.COUNTRIES_WRITE))],
)
def create_country(country: CountryCreate, db: Session = Depends(get_db)):
    return CountryService.create_country(db, country)

@router.get("/stats", response_model=List[CountryStats])
def get_country_stats(db: Session = Depends(get_db)):
    """Available tickets per country"""
    return CountryService.get_country_stats(db)

@router.get("/airlines", response_model=List[Airline])
def get_airlines(
    country_code: Optional[str] = Query(None, min_length=2, max_length=2, description="Filter by country"),
    db: Session = Depends(get_db)
):
    return CountryService.get_airlines(db, country_code)

@router.post(
    "/airlines",
    response_model=Airline,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_capability(permissions.COUNTRIES_WRITE))],
)
def create_airline(airline: AirlineCreate, db: Session = Depends(get_db)):
    return CountryService.create_airline(db, airline)

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from storefront.api.deps import get_settings
from storefront.data.database import get_db
from storefront.domain.schemas import PublicSettingsOut

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok"}


@router.get("/settings", response_model=PublicSettingsOut)
def public_settings(settings=Depends(get_settings)):
    return settings.model_dump(include=set(PublicSettingsOut.model_fields))

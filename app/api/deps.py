from fastapi import Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.services.catalog_service import DbItemCatalog
from app.services.dispatch_service import EffectDispatcher, default_dispatcher

# Authentication lives in front of this service; staff routes take the acting
# user's id in the request body.

def get_dispatcher(db: Session = Depends(get_db)) -> EffectDispatcher:
    return default_dispatcher(db)

def get_catalog(db: Session = Depends(get_db)) -> DbItemCatalog:
    return DbItemCatalog(db)

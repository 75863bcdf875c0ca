# relay/api/nodes.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from relay.infra.postgres import get_db
from relay.services.relay_service import count_active_nodes

router = APIRouter(prefix="/api/nodes")


@router.get("/count")
def active_nodes(db: Session = Depends(get_db)):
    """Participants seen in the last five minutes"""
    return {"activeNodes": count_active_nodes(db)}

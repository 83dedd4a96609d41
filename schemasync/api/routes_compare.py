from fastapi import APIRouter
from schemasync.reconcile.comparison import build_comparison
from schemasync.reconcile.types import SchemaComparison
from schemasync.schemas.runs import CompareRequest

router = APIRouter()

@router.post("/compare", response_model=SchemaComparison)
def compare(req: CompareRequest):
    # Pure diff and plan, nothing is persisted
    return build_comparison(req.reference, req.local)

import logging
from typing import List, Dict, Any, Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from medgrades.config import settings
from medgrades.core.models import Policy, Scope
from medgrades.core.grade_store import GradeStore
from medgrades.core.engine import calculate, validate_for_scope
from medgrades.core.repositories import JsonPolicyRepository, JsonFileSnapshotStore
from medgrades.core.session import CalculationSession

logger = logging.getLogger(__name__)

repo = JsonPolicyRepository()
snapshots = JsonFileSnapshotStore(settings.SESSION_DIR)

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def policy_or_404(policy_id: str) -> Policy:
    try:
        return repo.get(policy_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown policy: {policy_id}")


def scope_or_400(policy: Policy, scope: str) -> Scope:
    try:
        sc = Scope(scope)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown scope: {scope}")
    if not policy.supports(sc):
        raise HTTPException(status_code=400, detail=f"Policy {policy.id} does not support scope {scope}")
    return sc


def store_from(grades: Dict[str, Dict[str, Optional[Union[float, str]]]]) -> GradeStore:
    # values coming over the wire are committed straight away
    store = GradeStore.from_dict(grades)
    for entry in store.entries():
        store.commit_grade(entry.subject, entry.period)
    return store


def session_view(session: CalculationSession) -> Dict[str, Any]:
    return {
        "policy_id": session.policy.id,
        "scope": session.scope.value,
        "grades": session.grades.to_dict(),
        "result": None if session.result is None else session.result.to_display(),
        "errors": list(session.errors),
    }


# --------- Request models ----------
class ComputeRequest(BaseModel):
    policy_id: str
    scope: str = "annual"
    grades: Dict[str, Dict[str, Optional[Union[float, str]]]] = {}


class GradeInput(BaseModel):
    subject: str
    period: str
    value: Optional[Union[float, str]] = None
    commit: bool = True


class ScopeInput(BaseModel):
    scope: str


# --------- Endpoints ----------
@app.get("/policies")
def policies() -> List[Dict[str, Any]]:
    return [{
        "id": p.id,
        "name": p.name,
        "university": p.university,
        "year": p.year,
        "scopes": [s.value for s in p.scopes],
    } for p in repo.list_policies()]


@app.get("/policies/{policy_id}")
def policy_detail(policy_id: str) -> Dict[str, Any]:
    policy = policy_or_404(policy_id)
    subjects = []
    for s in policy.subjects:
        subjects.append({
            "name": s.name,
            "coefficient": s.coefficient,
            "rule": s.rule.tag,
            "periods": {
                sc.value: s.rule.required_periods(sc)
                for sc in policy.scopes if s.rule.applies_to(sc)
            },
        })
    return {
        "id": policy.id,
        "name": policy.name,
        "scopes": [s.value for s in policy.scopes],
        "subjects": subjects,
        "hospitals": [{"name": h.name, "min_average": h.min_average} for h in policy.hospitals],
    }


@app.post("/validate")
def validate(req: ComputeRequest) -> Dict[str, Any]:
    policy = policy_or_404(req.policy_id)
    scope = scope_or_400(policy, req.scope)
    return {"missing": validate_for_scope(policy, store_from(req.grades), scope)}


@app.post("/compute")
def compute(req: ComputeRequest):
    policy = policy_or_404(req.policy_id)
    scope = scope_or_400(policy, req.scope)
    try:
        outcome = calculate(policy, store_from(req.grades), scope)
    except Exception as e:
        logger.exception("Compute failed for %s/%s", policy.id, scope.value)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Compute failed", "details": str(e)}
        )
    if outcome.blocked:
        return JSONResponse(
            status_code=422,
            content={"errors": outcome.errors}
        )
    return outcome.result.to_display()


@app.get("/sessions/{policy_id}")
def get_session(policy_id: str) -> Dict[str, Any]:
    session = CalculationSession(policy_or_404(policy_id), snapshots)
    return session_view(session)


@app.put("/sessions/{policy_id}/grades")
def put_grade(policy_id: str, body: GradeInput) -> Dict[str, Any]:
    policy = policy_or_404(policy_id)
    subject = policy.find(body.subject)
    if subject is None:
        raise HTTPException(status_code=400, detail=f"Unknown subject: {body.subject}")
    periods = {p for sc in policy.scopes for p in subject.rule.required_periods(sc)}
    if body.period not in periods:
        raise HTTPException(status_code=400, detail=f"{subject.name} has no period {body.period}")
    session = CalculationSession(policy, snapshots)
    session.set_grade(body.subject, body.period, body.value)
    if body.commit:
        session.commit_grade(body.subject, body.period)
    return session_view(session)


@app.put("/sessions/{policy_id}/scope")
def put_scope(policy_id: str, body: ScopeInput) -> Dict[str, Any]:
    policy = policy_or_404(policy_id)
    scope = scope_or_400(policy, body.scope)
    session = CalculationSession(policy, snapshots)
    session.set_scope(scope)
    return session_view(session)


@app.post("/sessions/{policy_id}/calculate")
def calculate_session(policy_id: str):
    session = CalculationSession(policy_or_404(policy_id), snapshots)
    outcome = session.calculate()
    if outcome.blocked:
        return JSONResponse(
            status_code=422,
            content=session_view(session)
        )
    return session_view(session)


@app.delete("/sessions/{policy_id}")
def reset_session(policy_id: str) -> Dict[str, Any]:
    session = CalculationSession(policy_or_404(policy_id), snapshots)
    session.reset()
    return session_view(session)


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    uvicorn.run("medgrades.app:app", host=settings.HOST, port=settings.PORT, reload=True)

import logging
from contextlib import asynccontextmanager
from typing import Iterator, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from . import config
from .errors import DuplicateSelfMemberError, MemberNotFoundError, RelationNotFoundError, UnknownMemberError
from .inference import lookup_steps, member_relations, relation_to_self, resolve_between
from .kinship_loader import get_kinship_data, lookup_term, terms_for_path
from .logging_setup import configure_logging
from .models import (
    CreateFamilyMemberInput,
    CreateFamilyRelationInput,
    FamilyMember,
    FamilyRelation,
    Gender,
    KinshipTerm,
    MemberRelation,
    PathStep,
    RelationResult,
    UpdateFamilyMemberInput,
)
from .store import FamilyStore
from .validation import validate_graph

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 启动时加载称谓表
    get_kinship_data()
    yield


app = FastAPI(title="KinTree API", lifespan=lifespan)


def get_store() -> Iterator[FamilyStore]:
    store = FamilyStore.open(config.DB_PATH)
    try:
        yield store
    finally:
        store.close()


class CalculateRequest(BaseModel):
    members: List[FamilyMember]
    relations: List[FamilyRelation]
    sourceId: str
    targetId: str


class TreeResponse(BaseModel):
    members: List[FamilyMember]
    relations: List[FamilyRelation]


class MemberRelationsResponse(BaseModel):
    kinship: Optional[RelationResult] = None
    relations: List[MemberRelation]


class WarningsResponse(BaseModel):
    warnings: List[str]


@app.get("/api/health")
def health_check():
    return {"status": "ok"}


# ========== 称谓推导 ==========

@app.post("/api/calculate", response_model=RelationResult)
def calculate_relationship(req: CalculateRequest):
    try:
        return resolve_between(req.sourceId, req.targetId, req.members, req.relations)
    except UnknownMemberError as e:
        logger.warning("Calculate request references unknown member: %s", e.member_id)
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/api/family/relation", response_model=RelationResult)
def relation_between(
    from_id: str = Query(..., alias="fromId"),
    to_id: str = Query(..., alias="toId"),
    application_id: Optional[str] = Query(None, alias="applicationId"),
    store: FamilyStore = Depends(get_store),
):
    tree = store.get_tree_data(application_id)
    try:
        return resolve_between(from_id, to_id, tree["members"], tree["relations"])
    except UnknownMemberError as e:
        logger.warning("Relation lookup references unknown member: %s", e.member_id)
        raise HTTPException(status_code=404, detail=f"Member not found: {e.member_id}")


@app.get("/api/kinship/terms", response_model=KinshipTerm)
def get_kinship_term(path: str, gender: Gender, region: Optional[str] = None):
    term = lookup_term(path, gender, region)
    if term is None:
        raise HTTPException(status_code=404, detail="Kinship term not found")
    return term


@app.get("/api/kinship/variants", response_model=List[KinshipTerm])
def get_kinship_variants(path: str, gender: Gender):
    return terms_for_path(path, gender)


@app.post("/api/kinship/path", response_model=Optional[RelationResult])
def pick_path(steps: List[PathStep]):
    return lookup_steps(steps)


# ========== 成员 ==========

@app.get("/api/family/members", response_model=List[FamilyMember])
def list_members(
    application_id: Optional[str] = Query(None, alias="applicationId"),
    store: FamilyStore = Depends(get_store),
):
    return store.get_members(application_id)


@app.post("/api/family/members", response_model=FamilyMember, status_code=201)
def create_member(body: CreateFamilyMemberInput, store: FamilyStore = Depends(get_store)):
    if not body.nickname or not body.gender:
        logger.warning("Rejected member without nickname or gender")
        raise HTTPException(status_code=400, detail="Nickname and gender are required")
    try:
        return store.create_member(body)
    except DuplicateSelfMemberError as e:
        logger.warning("Duplicate self member in tree %s", e.application_id)
        raise HTTPException(status_code=409, detail=str(e))


@app.get("/api/family/members/{member_id}", response_model=FamilyMember)
def get_member(member_id: str, store: FamilyStore = Depends(get_store)):
    member = store.get_member(member_id)
    if member is None:
        logger.warning("Member not found: %s", member_id)
        raise HTTPException(status_code=404, detail="Member not found")
    return member


@app.get("/api/family/members/{member_id}/relations", response_model=MemberRelationsResponse)
def get_member_relations(
    member_id: str,
    application_id: Optional[str] = Query(None, alias="applicationId"),
    store: FamilyStore = Depends(get_store),
):
    """成员的直接关系，以及“我”对Ta的称呼"""
    tree = store.get_tree_data(application_id)
    if not any(m.id == member_id for m in tree["members"]):
        logger.warning("Member not found: %s", member_id)
        raise HTTPException(status_code=404, detail="Member not found")
    try:
        kinship = relation_to_self(member_id, tree["members"], tree["relations"])
    except UnknownMemberError as e:
        logger.warning("Member relations reference unknown member: %s", e.member_id)
        raise HTTPException(status_code=404, detail=f"Member not found: {e.member_id}")
    return {
        "kinship": kinship,
        "relations": member_relations(member_id, tree["members"], tree["relations"]),
    }


@app.put("/api/family/members/{member_id}", response_model=FamilyMember)
def update_member(member_id: str, body: UpdateFamilyMemberInput, store: FamilyStore = Depends(get_store)):
    try:
        return store.update_member(member_id, body)
    except MemberNotFoundError:
        logger.warning("Cannot update missing member %s", member_id)
        raise HTTPException(status_code=404, detail="Member not found")


@app.delete("/api/family/members/{member_id}")
def delete_member(member_id: str, store: FamilyStore = Depends(get_store)):
    try:
        store.delete_member(member_id)
    except MemberNotFoundError:
        logger.warning("Cannot delete missing member %s", member_id)
        raise HTTPException(status_code=404, detail="Member not found")
    return {"success": True}


# ========== 关系 ==========

@app.get("/api/family/relations", response_model=List[FamilyRelation])
def list_relations(
    application_id: Optional[str] = Query(None, alias="applicationId"),
    store: FamilyStore = Depends(get_store),
):
    return store.get_relations(application_id)


@app.post("/api/family/relations", response_model=FamilyRelation, status_code=201)
def create_relation(body: CreateFamilyRelationInput, store: FamilyStore = Depends(get_store)):
    if not body.from_member_id or not body.to_member_id or not body.relation_type:
        logger.warning("Rejected relation with missing fields")
        raise HTTPException(
            status_code=400,
            detail="from_member_id, to_member_id, and relation_type are required",
        )
    try:
        return store.create_relation(body)
    except MemberNotFoundError as e:
        logger.warning(
            "Cannot relate member %s: not in tree %s",
            e.member_id, body.applicationId or body.application_id,
        )
        raise HTTPException(status_code=404, detail=str(e))


@app.delete("/api/family/relations/{relation_id}")
def delete_relation(relation_id: str, store: FamilyStore = Depends(get_store)):
    try:
        store.delete_relation(relation_id)
    except RelationNotFoundError:
        logger.warning("Cannot delete missing relation %s", relation_id)
        raise HTTPException(status_code=404, detail="Relation not found")
    return {"success": True}


# ========== 整棵树 ==========

@app.get("/api/family/tree", response_model=TreeResponse)
def get_tree(
    application_id: Optional[str] = Query(None, alias="applicationId"),
    store: FamilyStore = Depends(get_store),
):
    return store.get_tree_data(application_id)


@app.get("/api/family/tree/warnings", response_model=WarningsResponse)
def get_tree_warnings(
    application_id: Optional[str] = Query(None, alias="applicationId"),
    store: FamilyStore = Depends(get_store),
):
    tree = store.get_tree_data(application_id)
    warnings = validate_graph(tree["members"], tree["relations"])
    for w in warnings:
        logger.warning("Family tree warning: %s", w)
    return {"warnings": warnings}


def run():
    """命令行启动服务"""
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()

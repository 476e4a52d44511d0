from fastapi import APIRouter, Query, Depends, HTTPException
from pydantic import BaseModel
from persistables.session import Session
from models import Owner, Owners
from deps import get_session

router = APIRouter()


class OwnerRegister(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str


class OwnerUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None


def _owner_to_dict(owner, with_pets=False):
    data = owner.to_dict()
    if with_pets:
        data["pets"] = [pet.to_dict() for pet in owner.pets or []]
    return data


def _get_owner_or_404(session, owner_id):
    existing = session.get_entity_by_primary_key(Owner, owner_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Owner not found")
    return existing


@router.post("/api/owners")
def register_owner(owner: OwnerRegister, session: Session = Depends(get_session)):
    new_owner = Owner(**owner.model_dump())
    session.persist(new_owner)
    return {**_owner_to_dict(new_owner), "message": "Owner registered successfully"}


@router.get("/api/owners")
def get_owners(
    session: Session = Depends(get_session),
    first_name: str = Query(None),
    last_name: str = Query(None),
    email: str = Query(None),
):
    clauses, params = ["1 = 1"], []
    for column, value in (("first_name", first_name), ("last_name", last_name), ("email", email)):
        if value:
            clauses.append(f"{session.generator.column('owners', column)} LIKE ?")
            params.append(f"%{value}%")

    meta = session.get_meta(Owner)
    sql = session.generator.get_select_query(meta, " AND ".join(clauses))
    owners = session.get_entity_collection(sql, Owners(), params)
    return [_owner_to_dict(o) for o in owners]


@router.get("/api/owners/{owner_id}")
def get_owner(owner_id: int, session: Session = Depends(get_session)):
    return _owner_to_dict(_get_owner_or_404(session, owner_id), with_pets=True)


@router.put("/api/owners/{owner_id}")
def update_owner(owner_id: int, owner: OwnerUpdate, session: Session = Depends(get_session)):
    existing = _get_owner_or_404(session, owner_id)
    for field, value in owner.model_dump(exclude_none=True).items():
        setattr(existing, field, value)
    session.persist(existing)
    return {**_owner_to_dict(existing), "message": "Owner updated"}


@router.delete("/api/owners/{owner_id}")
def delete_owner(owner_id: int, session: Session = Depends(get_session)):
    existing = _get_owner_or_404(session, owner_id)
    session.desist(existing)
    return {"message": "Owner deleted"}

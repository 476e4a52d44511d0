from fastapi import APIRouter, Query, Depends, HTTPException
from pydantic import BaseModel
from persistables.session import Session
from models import Owner, Pet, Pets
from deps import get_session

router = APIRouter()


class PetCreate(BaseModel):
    owner_id: int
    name: str
    species: str
    breed: str
    birth_date: str


class PetUpdate(BaseModel):
    owner_id: int | None = None
    name: str | None = None
    species: str | None = None
    breed: str | None = None
    birth_date: str | None = None


def _get_or_404(session, entity_class, key, detail):
    existing = session.get_entity_by_primary_key(entity_class, key)
    if existing is None:
        raise HTTPException(status_code=404, detail=detail)
    return existing


@router.get("/api/pets")
def get_pets(
    session: Session = Depends(get_session),
    owner_id: int = Query(None),
    species: str = Query(None),
):
    clauses, params = ["1 = 1"], []
    if owner_id is not None:
        clauses.append(f"{session.generator.column('pets', 'owner_id')} = ?")
        params.append(owner_id)
    if species:
        clauses.append(f"{session.generator.column('pets', 'species')} LIKE ?")
        params.append(f"%{species}%")

    sql = session.generator.get_select_query(session.get_meta(Pet), " AND ".join(clauses))
    return [p.to_dict() for p in session.get_entity_collection(sql, Pets(), params)]


@router.get("/api/pets/{pet_id}")
def get_pet(pet_id: int, session: Session = Depends(get_session)):
    pet = _get_or_404(session, Pet, pet_id, "Pet not found")
    owner = pet.owner.to_dict() if pet.owner else None
    return {**pet.to_dict(), "owner": owner}


@router.post("/api/pets")
def add_pet(pet: PetCreate, session: Session = Depends(get_session)):
    owner = _get_or_404(session, Owner, pet.owner_id, "Owner not found")
    new_pet = Pet(**pet.model_dump(exclude={"owner_id"}))
    new_pet.set_owner(owner)
    session.persist(new_pet)
    return {**new_pet.to_dict(), "message": "Pet added successfully"}


@router.put("/api/pets/{pet_id}")
def update_pet(pet_id: int, pet: PetUpdate, session: Session = Depends(get_session)):
    existing = _get_or_404(session, Pet, pet_id, "Pet not found")
    changes = pet.model_dump(exclude_none=True)
    if "owner_id" in changes:
        existing.set_owner(_get_or_404(session, Owner, changes.pop("owner_id"), "Owner not found"))
    for field, value in changes.items():
        setattr(existing, field, value)
    session.persist(existing)
    return {**existing.to_dict(), "message": "Pet updated"}


@router.delete("/api/pets/{pet_id}")
def delete_pet(pet_id: int, session: Session = Depends(get_session)):
    existing = _get_or_404(session, Pet, pet_id, "Pet not found")
    session.desist(existing)
    return {"message": "Pet deleted"}

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from persistables.builder import SqliteGenerator
from persistables.database import DatabaseEngine
from persistables.session import Session

from models import create_schema

from endpoints.owners_endpoints import router as owners_router
from endpoints.pets_endpoints import router as pets_router


app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = DatabaseEngine(os.environ.get("PERSISTABLES_DB", "persistables.sqlite"), check_same_thread=False)
create_schema(engine)

session = Session(engine, generator=SqliteGenerator())
app.state.session = session

app.include_router(owners_router)
app.include_router(pets_router)

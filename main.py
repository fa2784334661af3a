from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Base y engine para crear las tablas al arrancar
from app.db.session import engine, Base

# Todos los modelos registrados antes del create_all
from app.db.models import _all

from app.core.config import Config

# Routers
from app.api.auth import router as auth_router
from app.api.teams import router as teams_router
from app.api.matches import router as matches_router
from app.api.rewards import router as rewards_router
from app.api.stats import router as stats_router
from app.api.admin import router as admin_router


app = FastAPI(
    title="Youth Team Rewards",
    version="1.0.0"
)

# Tablas (sin migraciones)
Base.metadata.create_all(bind=engine)

# Montaje de routers
app.include_router(auth_router)
app.include_router(teams_router)
app.include_router(matches_router)
app.include_router(rewards_router)
app.include_router(stats_router)
app.include_router(admin_router)


# Orígenes permitidos desde CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def read_root():
    return {"message": "Youth Team Rewards API ⚽"}

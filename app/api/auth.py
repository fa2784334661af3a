from fastapi import APIRouter, HTTPException, Depends
from app.schemas.user import UserCreate, UserLogin, UserOut
from app.db.session import SessionLocal
from app.db.models.user import User
from app.core.security import hash_password, verify_password, create_access_token
from app.core.deps import get_current_user
from app.core.logger import setup_logger

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = setup_logger(__name__)

@router.post("/register", status_code=201)
def register(user: UserCreate):
    db = SessionLocal()
    try:
        # 1. Validar que no exista email o username
        existing_user = db.query(User).filter(
            (User.email == user.email) |
            (User.username == user.username)
        ).first()
        if existing_user:
            raise HTTPException(status_code=400, detail="Email or username already registered")

        # 2. Crear usuario (los admins se crean por script)
        new_user = User(
            email=user.email,
            username=user.username,
            full_name=user.full_name,
            hashed_password=hash_password(user.password),
            role=user.role,
        )
        db.add(new_user)
        db.commit()
        logger.info(f"👤 Nuevo usuario {new_user.username} ({new_user.role})")
        return {"message": "User created", "id": new_user.id}
    finally:
        db.close()

@router.post("/login")
def login(user: UserLogin):
    db = SessionLocal()
    try:
        db_user = db.query(User).filter(
            (User.email == user.identifier) |
            (User.username == user.identifier)
        ).first()
        if not db_user or not verify_password(user.password, db_user.hashed_password):
            raise HTTPException(status_code=401, detail="Invalid credentials")

        token = create_access_token({
            "sub": str(db_user.id),
            "role": db_user.role,
            "username": db_user.username,
        })
        return {"access_token": token, "token_type": "bearer"}
    finally:
        db.close()

@router.get("/me", response_model=UserOut)
def get_current_user_data(current_user: User = Depends(get_current_user)):
    return current_user

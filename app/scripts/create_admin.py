import os
from sqlalchemy.exc import SQLAlchemyError
from app.db.session import SessionLocal, engine, Base
from app.db.models import _all
from app.db.models.user import User
from app.core.security import hash_password


def create_admin_user():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    username = os.getenv("ADMIN_USERNAME", "admin")
    password = os.getenv("ADMIN_PASSWORD", "admin123")  # 👉 cámbiala tras el primer login

    try:
        existing_user = (
            db.query(User)
            .filter(
                (User.email == email) | (User.username == username)
            )
            .first()
        )

        if existing_user:
            print("⚠️  Ya existe un usuario con ese email o username")
            print("➡️  Email:", existing_user.email)
            print("➡️  Rol:", existing_user.role)
            return

        db.add(User(
            email=email,
            username=username,
            full_name="Catalog admin",
            hashed_password=hash_password(password),
            role="admin"
        ))
        db.commit()

        print("✅ Administrador del catálogo creado")
        print("➡️  Email:", email)
        print("➡️  Usuario:", username)

    except SQLAlchemyError as e:
        db.rollback()
        print("❌ Error creando el usuario administrador")
        print(e)

    finally:
        db.close()


if __name__ == "__main__":
    create_admin_user()

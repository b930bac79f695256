import logging
from sqlalchemy.orm import Session

from recipe_hub import crud, models
from recipe_hub.db.session import Base, SessionLocal, engine
from recipe_hub.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_db(db: Session) -> models.User:
    """
    Create the first administrator from settings if that account doesn't exist yet.
    This is the only way an admin comes into being; later admins are promoted by an admin.
    """
    user = crud.get_user_by_email(db, email=settings.FIRST_SUPERUSER_EMAIL)
    if user:
        logger.info(f"Superuser {settings.FIRST_SUPERUSER_EMAIL} already exists.")
        return user

    logger.info(f"Creating superuser {settings.FIRST_SUPERUSER_EMAIL}...")
    user = crud.create_user(
        db,
        email=settings.FIRST_SUPERUSER_EMAIL,
        password=settings.FIRST_SUPERUSER_PASSWORD,
        first_name=settings.FIRST_SUPERUSER_FIRST_NAME,
        last_name=settings.FIRST_SUPERUSER_LAST_NAME,
        role=models.UserRole.ADMIN,
    )
    logger.info("Superuser created successfully.")
    return user


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()

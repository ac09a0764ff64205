"""Idempotent startup data: identity roles, the admin account and a starter catalog."""
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from library_api import auth, models
from library_api.config import settings

logger = logging.getLogger(__name__)

ROLES = ("Admin", "User")


def seed_roles(db: Session) -> None:
    existing = set(db.scalars(select(models.Role.name)))
    for name in ROLES:
        if name not in existing:
            db.add(models.Role(name=name))
            logger.info(f"Created role {name}")
    db.commit()


def seed_admin(db: Session) -> None:
    if db.scalars(select(models.User).where(models.User.email == settings.ADMIN_EMAIL)).first():
        return

    admin_role = db.scalars(select(models.Role).where(models.Role.name == "Admin")).one()
    admin = models.User(
        user_name=settings.ADMIN_USER_NAME,
        email=settings.ADMIN_EMAIL,
        full_name="System Administrator",
        password_hash=auth.hash_password(settings.ADMIN_PASSWORD),
    )
    admin.roles.append(admin_role)
    db.add(admin)
    db.commit()
    logger.info("Admin user created")


def seed_catalog(db: Session) -> None:
    if db.scalar(select(func.count()).select_from(models.Author)):
        return

    rowling = models.Author(name="J.K. Rowling")
    newton = models.Author(name="Isaac Newton")
    fantasy = models.Category(name="Fantasy")
    science = models.Category(name="Science")
    bloomsbury = models.Publisher(name="Bloomsbury", address="London", contact_number="123456789")
    cambridge = models.Publisher(name="Cambridge", address="Cambridge", contact_number="987654321")

    philosophers_stone = models.Book(
        title="Harry Potter and the Sorcerer's Stone",
        isbn="123-456789",
        category=fantasy,
        author=rowling,
        publisher=bloomsbury,
    )
    principia = models.Book(
        title="Philosophiæ Naturalis Principia Mathematica",
        isbn="987-654321",
        category=science,
        author=newton,
        publisher=cambridge,
    )
    philosophers_stone.reviews.append(
        models.Review(reviewer_name="John Doe", content="Amazing book!", rating=5)
    )
    principia.reviews.append(
        models.Review(reviewer_name="Jane Smith", content="Very insightful.", rating=5)
    )

    db.add_all([philosophers_stone, principia])
    db.commit()
    logger.info("Seeded starter catalog")


def seed_database(db: Session) -> None:
    seed_roles(db)
    seed_admin(db)
    seed_catalog(db)

from typing import List, Optional

from sqlalchemy.orm import Session

from medicare_api.models import Doctor, User
from medicare_api.schemas import DoctorCreate, UserCreate


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def register_user(db: Session, payload: UserCreate) -> bool:
    """Insert the user unless the email is already known. Returns True when a new row was created."""
    if get_user_by_email(db, payload.email):
        return False

    user = User(email=payload.email, name=payload.name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return True


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def is_admin(db: Session, email: str) -> bool:
    user = get_user_by_email(db, email)
    return user is not None and user.role == "admin"


def make_admin(db: Session, user_id: int) -> bool:
    """Grant the admin role. Returns False when no user matched ``user_id``."""
    matched = db.query(User).filter(User.id == user_id).update({User.role: "admin"})
    db.commit()
    return bool(matched)


def list_doctors(db: Session) -> List[Doctor]:
    return db.query(Doctor).order_by(Doctor.id).all()


def add_doctor(db: Session, payload: DoctorCreate) -> Doctor:
    doctor = Doctor(
        name=payload.name,
        email=payload.email,
        specialty=payload.specialty,
        image=payload.image,
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


def delete_doctor(db: Session, doctor_id: int) -> bool:
    deleted = db.query(Doctor).filter(Doctor.id == doctor_id).delete()
    db.commit()
    return bool(deleted)

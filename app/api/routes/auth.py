import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import RegisterRequest, LoginRequest, ChangePasswordRequest
from app.models.user import User
from app.core.security import hash_password, verify_password, create_access_token
from app.api.deps import get_current_user
from app.api.serializers import user_out

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    # Self-registration always yields a customer; staff accounts are created by an admin.
    user = User(
        id=str(uuid.uuid4()),
        email=body.email,
        first_name=body.firstName.strip(),
        last_name=body.lastName.strip(),
        phone=body.phone,
        role="customer",
        password_hash=hash_password(body.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"user": user_out(user), "token": create_access_token(user.id)}


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"user": user_out(user), "token": create_access_token(user.id)}


@router.get("/me")
def me(me: User = Depends(get_current_user)):
    return {"user": user_out(me)}


@router.post("/change-password")
def change_password(body: ChangePasswordRequest,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    if not verify_password(body.oldPassword, me.password_hash):
        raise HTTPException(status_code=400, detail="Old password incorrect")
    me.password_hash = hash_password(body.newPassword)
    db.commit()
    return {"ok": True}

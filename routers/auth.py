import logging

from fastapi import APIRouter, Depends, status, HTTPException, Request, UploadFile, File
from sqlalchemy.orm import Session
import sqlalchemy  # For catching IntegrityError

from config import Settings, get_settings
from database import get_db
import models
import oauth
import schemas
import utils
from rate_limits import AUTH_LIMIT, AUTH_LIMIT_MESSAGE, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentications"])


def _auth_response(user: models.User, settings: Settings) -> dict:
    return {**oauth.create_token_pair(user, settings), "user": schemas.UserOut.model_validate(user)}


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=schemas.TokenPair)
@limiter.limit(AUTH_LIMIT, error_message=AUTH_LIMIT_MESSAGE)
def signup(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db),
           settings: Settings = Depends(get_settings)):
    existing = db.query(models.User).filter(
        (models.User.email == user.email) | (models.User.username == user.username)
    ).first()
    if existing:
        if existing.email == user.email:
            detail = "Email is already registered"
        else:
            detail = "Username is already taken"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Account already exists: {detail}")

    try:
        verification_token = oauth.create_verification_token(user.email, settings)
        new_user = models.User(
            email=user.email,
            password=utils.hash(user.password),
            username=user.username,
            verification_token=verification_token,
        )
        db.add(new_user)
        db.commit()
        db.refresh(new_user)

    except sqlalchemy.exc.IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Account already exists")

    except Exception:
        db.rollback()
        logger.exception("User creation failed for %s", user.email)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create account")

    utils.send_verification_email(settings, new_user.email, verification_token)
    return _auth_response(new_user, settings)


@router.post("/login", response_model=schemas.TokenPair)
@limiter.limit(AUTH_LIMIT, error_message=AUTH_LIMIT_MESSAGE)
def login(request: Request, user_creds: schemas.UserLogin, db: Session = Depends(get_db),
          settings: Settings = Depends(get_settings)):
    user = db.query(models.User).filter(models.User.email == user_creds.email).first()

    if not user or not utils.verify(user_creds.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return _auth_response(user, settings)


@router.post("/refresh-token", response_model=schemas.TokenPair)
def refresh_token(payload: schemas.RefreshRequest, db: Session = Depends(get_db),
                  settings: Settings = Depends(get_settings)):
    if not payload.refreshToken:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Refresh token is required")

    decoded = oauth.decode_token(payload.refreshToken, oauth.REFRESH, settings)
    user = None
    if decoded is not None:
        user = db.query(models.User).filter(models.User.id == decoded.get("id")).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    return _auth_response(user, settings)


@router.post("/logout")
def logout(current_user: models.User = Depends(oauth.get_current_user)):
    # Tokens are stateless; the client drops them
    return {"message": "Logged out successfully"}


@router.get("/verify-email/{token}")
def verify_email(token: str, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    decoded = oauth.decode_token(token, oauth.VERIFY, settings)
    user = None
    if decoded is not None:
        user = db.query(models.User).filter(
            models.User.email == decoded.get("email"),
            models.User.verification_token == token,
        ).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired verification token")

    user.is_verified = True
    user.verification_token = None
    db.commit()
    return {"message": "Email verified successfully"}


@router.post("/forgot-password")
@limiter.limit(AUTH_LIMIT, error_message=AUTH_LIMIT_MESSAGE)
def request_password_reset(request: Request, payload: schemas.ForgotPasswordRequest, db: Session = Depends(get_db),
                           settings: Settings = Depends(get_settings)):
    user = db.query(models.User).filter(models.User.email == payload.email.lower()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.reset_token = oauth.create_reset_token(user, settings)
    db.commit()
    utils.send_password_reset_email(settings, user.email, user.reset_token)
    return {"message": "Password reset email sent"}


@router.post("/reset-password/{token}")
@limiter.limit(AUTH_LIMIT, error_message=AUTH_LIMIT_MESSAGE)
def reset_password(request: Request, token: str, payload: schemas.ResetPasswordRequest,
                   db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    decoded = oauth.decode_token(token, oauth.RESET, settings)
    user = None
    if decoded is not None:
        user = db.query(models.User).filter(
            models.User.id == decoded.get("id"),
            models.User.reset_token == token,
        ).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    user.password = utils.hash(payload.password)
    user.reset_token = None
    db.commit()
    return {"message": "Password reset successfully"}


# ----------------------- Profile -----------------------

@router.get("/profile", response_model=schemas.ProfileOut)
def get_profile(current_user: models.User = Depends(oauth.get_current_user)):
    return current_user


@router.patch("/profile", response_model=schemas.ProfileOut)
def update_profile(payload: schemas.ProfileUpdate, db: Session = Depends(get_db),
                   current_user: models.User = Depends(oauth.get_current_user)):
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid updates provided")

    if "username" in updates:
        taken = db.query(models.User).filter(
            models.User.username == updates["username"],
            models.User.id != current_user.id,
        ).first()
        if taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is already taken")

    for key, value in updates.items():
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.post("/avatar", response_model=schemas.ProfileOut)
def upload_avatar(avatar: UploadFile = File(...), db: Session = Depends(get_db),
                  settings: Settings = Depends(get_settings),
                  current_user: models.User = Depends(oauth.get_current_user)):
    filename = utils.save_upload_file(avatar, settings, prefix=f"avatar-{current_user.id}")
    old_avatar = current_user.avatar
    current_user.avatar = utils.get_file_url(filename, settings)
    try:
        db.commit()
    except Exception:
        db.rollback()
        utils.delete_upload_file(filename, settings)
        logger.exception("Failed to store avatar for user %s", current_user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to upload avatar")
    db.refresh(current_user)
    utils.delete_upload_file(old_avatar, settings)
    return current_user


@router.put("/change-password")
def change_password(payload: schemas.PasswordUpdate, db: Session = Depends(get_db),
                    current_user: models.User = Depends(oauth.get_current_user)):
    if not utils.verify(payload.current_password, current_user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong current password")
    current_user.password = utils.hash(payload.new_password)
    db.commit()
    return {"message": "Password updated"}

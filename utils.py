import io
import logging
import os
import smtplib
import uuid
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi import UploadFile
from passlib.context import CryptContext
from PIL import Image, UnidentifiedImageError

from config import Settings
from errors import DependencyError, UserInputError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif"}


def hash(password: str) -> str:
    return pwd_context.hash(password)


def verify(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ---- Uploads ----

def save_upload_file(upload_file: UploadFile, settings: Settings, prefix: str = "image") -> str:
    """
    Validate an uploaded image and store it in the upload directory under a unique name.
    Returns the stored filename.
    """
    if upload_file.content_type not in ALLOWED_IMAGE_TYPES:
        raise UserInputError("Invalid file type. Only JPEG, PNG and GIF are allowed.")

    data = upload_file.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise UserInputError("File too large. Maximum size is 5MB.")
    try:
        Image.open(io.BytesIO(data)).verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise UserInputError("Uploaded file is not a valid image")

    os.makedirs(settings.upload_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    unique_id = uuid.uuid4().hex[:8]
    extension = os.path.splitext(upload_file.filename or "")[1].lower()
    filename = f"{prefix}-{timestamp}-{unique_id}{extension}"

    try:
        with open(os.path.join(settings.upload_dir, filename), "wb") as buffer:
            buffer.write(data)
    except OSError as e:
        raise DependencyError(f"Failed to store uploaded file: {e}")
    return filename


def get_file_url(filename: str, settings: Settings) -> str:
    return f"{settings.backend_url}/uploads/{filename}"


def delete_upload_file(file_url: Optional[str], settings: Settings) -> None:
    """Remove a previously stored upload given the URL it was served under."""
    if not file_url:
        return
    filename = os.path.basename(file_url.split("?")[0])
    file_path = os.path.join(settings.upload_dir, filename)
    if os.path.exists(file_path):
        os.remove(file_path)
        logger.info("Deleted upload %s", filename)


# ---- Email ----

def _send_email(settings: Settings, to_email: str, subject: str, html: str) -> None:
    msg = MIMEMultipart()
    msg['From'] = settings.email_sender
    msg['To'] = to_email
    msg['Subject'] = subject
    msg.attach(MIMEText(html, 'html'))

    try:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30)
        try:
            server.starttls()
            server.login(settings.email_sender, settings.email_password)
            server.sendmail(settings.email_sender, to_email, msg.as_string())
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error sending email to %s: %s", to_email, e)
        raise DependencyError("Failed to send email. Please try again later.")


def send_verification_email(settings: Settings, email: str, token: str) -> None:
    if not settings.email_configured:
        logger.info("Email not configured; verification email for %s not sent (token=%s)", email, token)
        return

    verification_url = f"{settings.frontend_url}/verify-email?token={token}"
    body = f"""
        <h1>Email Verification</h1>
        <p>Please click the link below to verify your email address:</p>
        <a href="{verification_url}">{verification_url}</a>
        <p>This link will expire in {settings.verification_token_expire_hours} hours.</p>
    """
    _send_email(settings, email, "Verify Your Email", body)
    logger.info("Verification email sent to %s", email)


def send_password_reset_email(settings: Settings, email: str, token: str) -> None:
    if not settings.email_configured:
        logger.info("Email not configured; password reset email for %s not sent (token=%s)", email, token)
        return

    reset_url = f"{settings.frontend_url}/reset-password?token={token}"
    body = f"""
        <h1>Password Reset Request</h1>
        <p>You requested a password reset. Click the link below to reset your password:</p>
        <a href="{reset_url}">{reset_url}</a>
        <p>This link will expire in {settings.reset_token_expire_minutes} minutes.</p>
        <p>If you didn't request this, please ignore this email.</p>
    """
    _send_email(settings, email, "Password Reset Request", body)
    logger.info("Password reset email sent to %s", email)

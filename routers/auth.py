from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import pydantic
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from errors import ConflictError, DispatchError, InvalidCredentials, ValidationError
from services.auth_service import AuthService
from services.student_store import StudentStore
from utils.mailer import Mailer, get_mailer
from utils.otp_service import OtpRegistry, get_otp_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

P = TypeVar("P", bound=BaseModel)


class LoginIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RegisterIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class SendOtpIn(BaseModel):
    email: Optional[str] = None


class VerifyOtpIn(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


async def read_body(request: Request) -> Dict[str, Any]:
    """Request fields from a JSON body or an HTML form post."""
    content_type = (request.headers.get("content-type") or "").lower()
    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    if "form" in content_type:
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}
    return {}


def _parse(model: Type[P], body: Dict[str, Any]) -> P:
    # Wrongly typed fields count as missing.
    try:
        return model.model_validate(body)
    except pydantic.ValidationError:
        return model()


def get_auth_service(
    db: Session = Depends(get_db),
    otp_registry: OtpRegistry = Depends(get_otp_registry),
    mailer: Mailer = Depends(get_mailer),
) -> AuthService:
    return AuthService(store=StudentStore(db), otp_registry=otp_registry, mailer=mailer)


@router.post("/login")
def login(body: Dict[str, Any] = Depends(read_body), service: AuthService = Depends(get_auth_service)):
    payload = _parse(LoginIn, body)
    try:
        service.login(payload.username, payload.password)
    except ValidationError:
        return PlainTextResponse("Username and password required", status_code=400)
    except InvalidCredentials as e:
        return PlainTextResponse(str(e), status_code=401)
    except Exception:
        logger.exception("Login error")
        return PlainTextResponse("Server error", status_code=500)
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/register")
def register(body: Dict[str, Any] = Depends(read_body), service: AuthService = Depends(get_auth_service)):
    payload = _parse(RegisterIn, body)
    try:
        service.register(payload.username, payload.password, payload.email)
    except ValidationError:
        return JSONResponse({"error": "All fields required"}, status_code=400)
    except ConflictError as e:
        logger.info("Registration conflict on %s", e.field)
        msg = "Email already registered" if e.field == "email" else "Username already exists"
        return JSONResponse({"error": msg}, status_code=409)
    except Exception:
        logger.exception("Registration error")
        return JSONResponse({"error": "Server error"}, status_code=500)
    return {"message": "Registration successful!"}


@router.post("/send-otp")
def send_otp(body: Dict[str, Any] = Depends(read_body), service: AuthService = Depends(get_auth_service)):
    payload = _parse(SendOtpIn, body)
    try:
        service.send_otp(payload.email)
    except ValidationError:
        return JSONResponse({"error": "Email is required"}, status_code=400)
    except DispatchError as e:
        logger.error("Error sending OTP: %s", e)
        return JSONResponse({"error": "Failed to send OTP"}, status_code=500)
    except Exception:
        logger.exception("Error sending OTP")
        return JSONResponse({"error": "Failed to send OTP"}, status_code=500)
    return {"message": "OTP sent!"}


@router.post("/verify-otp")
def verify_otp(body: Dict[str, Any] = Depends(read_body), service: AuthService = Depends(get_auth_service)):
    payload = _parse(VerifyOtpIn, body)
    if service.verify_otp(payload.email, payload.otp):
        return {"success": True, "message": "OTP verified!"}
    return JSONResponse({"success": False, "message": "Invalid OTP"}, status_code=400)

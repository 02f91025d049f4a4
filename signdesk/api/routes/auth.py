from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from signdesk.api.deps import get_db
from signdesk.schemas.auth import AdminStatus, LoginRequest, RefreshRequest, RegisterRequest, Token
from signdesk.services.audit import AuditService
from signdesk.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _services(session: Session) -> tuple[AuthService, AuditService]:
    return AuthService(session), AuditService(session)


def _client_details(request: Request) -> dict[str, str | None]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, session: Session = Depends(get_db)) -> Token:
    auth_service, audit_service = _services(session)
    try:
        token = auth_service.register(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    audit_service.record_event(event_type="user_registered", details={"email": payload.email}, **_client_details(request))
    return token


@router.get("/admin/exists", response_model=AdminStatus)
def admin_exists(session: Session = Depends(get_db)) -> AdminStatus:
    auth_service, _ = _services(session)
    return AdminStatus(admin_exists=auth_service.admin_exists())


@router.post("/admin/setup", response_model=Token, status_code=status.HTTP_201_CREATED)
def setup_admin(payload: RegisterRequest, request: Request, session: Session = Depends(get_db)) -> Token:
    auth_service, audit_service = _services(session)
    try:
        token = auth_service.setup_admin(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    audit_service.record_event(event_type="admin_created", details={"email": payload.email}, **_client_details(request))
    return token


@router.post("/login", response_model=Token)
def login(
    payload: LoginRequest,
    request: Request,
    session: Session = Depends(get_db),
) -> Token:
    auth_service, audit_service = _services(session)
    try:
        token = auth_service.authenticate(payload)
    except ValueError as exc:
        audit_service.record_event(
            event_type="login_failed",
            details={"email": payload.username},
            **_client_details(request),
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    audit_service.record_event(event_type="login", details={"email": payload.username}, **_client_details(request))
    return token


@router.post("/refresh", response_model=Token)
def refresh(payload: RefreshRequest, session: Session = Depends(get_db)) -> Token:
    auth_service, _ = _services(session)
    try:
        return auth_service.refresh(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

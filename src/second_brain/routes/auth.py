"""
# Authentication Routes

Local registration and login, Google sign-in, and the caller's identity.

## API Endpoints

- `POST /auth/register` - Create an account and its default brain (201)
- `POST /auth/login` - Exchange e-mail and password for a bearer token
- `POST /auth/google` - Exchange a Google ID token for a bearer token
- `GET /auth/me` - Return the authenticated user

Every token-issuing endpoint responds with `{"token", "token_type", "user"}`.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from second_brain.dependencies import ServiceContainer, get_container, get_current_user_id
from second_brain.exceptions import SecondBrainError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.user_models import AuthResponse, GoogleLoginRequest, LoginRequest, MeResponse, RegisterRequest

logger = get_logger(prefix="[Auth Routes]")

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, container: ServiceContainer = Depends(get_container)):
    """
    Register a new user.

    Creates the account with a bcrypt-hashed password and a default brain named
    "My Brain", then returns a bearer token.

    Raises:
        HTTPException(400): If username, e-mail or password are invalid.
        HTTPException(409): If the username or e-mail is already registered.
    """
    try:
        return await container.auth.register(request.username, request.email, request.password)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Registration failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, container: ServiceContainer = Depends(get_container)):
    """
    Authenticate with e-mail and password.

    Raises:
        HTTPException(401): On unknown e-mail or wrong password ("Invalid credentials").
    """
    try:
        return await container.auth.login(request.email, request.password)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Login failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/google", response_model=AuthResponse)
async def google_login(request: GoogleLoginRequest, container: ServiceContainer = Depends(get_container)):
    """
    Sign in with a Google ID token, creating or linking the account as needed.

    Raises:
        HTTPException(401): If the token cannot be verified or has no e-mail.
    """
    try:
        return await container.auth.google_login(request.token)
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Google login failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/me", response_model=MeResponse)
async def me(
    user_id: str = Depends(get_current_user_id), container: ServiceContainer = Depends(get_container)
):
    try:
        return MeResponse(user=await container.auth.me(user_id))
    except SecondBrainError:
        raise
    except Exception as e:
        logger.error("Failed to load current user: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from ..deps import bearer_token, get_account_service, get_current_user_id, get_identity
from ..errors import NotFoundError
from ..schemas.user import LoginRequest, RegisterRequest, TokenResponse, User
from ..services.identity import AccountService, IdentityProvider

app = APIRouter()


@app.post("/auth/register", response_model=TokenResponse)
async def register(payload: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
    def do_register():
        user, token = accounts.register(
            payload.email,
            payload.password,
            payload.username,
            payload.household_name,
        )
        return TokenResponse(user_id=user.id, token=token)

    return await run_in_threadpool(do_register)


@app.post("/auth/login", response_model=TokenResponse)
async def login(payload: LoginRequest, identity: IdentityProvider = Depends(get_identity)):
    user_id, token = await run_in_threadpool(identity.login, payload.email, payload.password)
    return TokenResponse(user_id=user_id, token=token)


@app.post("/auth/logout")
async def logout(token: str | None = Depends(bearer_token), identity: IdentityProvider = Depends(get_identity)):
    identity.sign_out(token)
    return {"ok": True}


@app.get("/users/me", response_model=User)
async def me(
    user_id: str = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    user = await run_in_threadpool(accounts.get_user, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user

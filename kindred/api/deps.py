from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kindred.core.errors import Unauthorized
from kindred.models.user import User
from kindred.services.accounts import AccountService
from kindred.services.conversations import ConversationService
from kindred.services.matching import MatchService
from kindred.services.profiles import ProfileService

bearer = HTTPBearer(auto_error=False)


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_profiles(request: Request) -> ProfileService:
    return request.app.state.profiles


def get_matching(request: Request) -> MatchService:
    return request.app.state.matching


def get_conversations(request: Request) -> ConversationService:
    return request.app.state.conversations


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    accounts: AccountService = Depends(get_accounts),
) -> User:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token, authorization denied")
    return await accounts.authenticate(credentials.credentials)

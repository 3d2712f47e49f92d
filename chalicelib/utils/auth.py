import functools
from typing import Callable, Dict, Optional

from chalice.app import Request

from chalicelib.users import Session, User
from chalicelib.utils import exceptions as utils_exceptions
from chalicelib.utils.logger import bind_request, logger

UserResolver = Callable[[Dict[str, str]], Optional[str]]


def get_bearer_token(headers) -> Optional[str]:
    authorization = (headers or {}).get('authorization')
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(' ')
    if scheme.lower() == 'bearer':
        return token.strip() or None
    return authorization.strip()


class SessionUserResolver:
    """
    Resolves the caller from a session token stored by the auth provider.
    Expired sessions and sessions of deleted users resolve to nobody.
    """

    def __call__(self, headers) -> Optional[str]:
        token = get_bearer_token(headers)
        if token is None:
            return None
        try:
            session = Session.init_get_by_token(token)
        except utils_exceptions.RecordNotFound:
            logger.info('SessionUserResolver ::: unknown session token')
            return None
        if session.is_expired():
            logger.info(f'SessionUserResolver ::: session of user_id={session.session_user_id} expired')
            return None
        if session.session_user_id is None or not User.exists(session.session_user_id):
            logger.info(f'SessionUserResolver ::: user_id={session.session_user_id} of the session does not exist')
            return None
        return session.session_user_id


_user_resolver: UserResolver = SessionUserResolver()


def set_user_resolver(resolver: UserResolver) -> UserResolver:
    """
    Installs another way to identify the caller, returns the previous resolver
    """
    global _user_resolver
    previous, _user_resolver = _user_resolver, resolver
    return previous


def get_current_user_id(request: Request) -> Optional[str]:
    return _user_resolver(request.headers)


def authenticate_class(func):
    """
    Wrapper for class methods which require user's authentication
    """

    @functools.wraps(func)
    def result_auth(*args, **kwargs):
        request = args[1]
        bind_request(request)
        user_id = get_current_user_id(request)
        if user_id is None:
            raise utils_exceptions.NotAuthenticated()
        setattr(request, 'auth_result', {'user_id': user_id})
        logger.info(f'authenticate_class ::: SUCCESS, {func.__name__=}, {user_id=}')
        return func(*args, **kwargs)

    return result_auth

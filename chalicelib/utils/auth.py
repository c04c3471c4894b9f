import functools
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from uuid import uuid4

import bcrypt
import jwt
from chalice.app import Request

from chalicelib.constants import keys_structure
from chalicelib.utils import config, db as utils_db, exceptions as utils_exceptions
from chalicelib.utils.logger import log_request, logger

JWT_ALGORITHM = 'HS256'
BEARER_PREFIX = 'Bearer '


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=10)).decode('utf-8')


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def issue_token(user_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        'id': user_id,
        'iat': now,
        'exp': now + timedelta(days=config.jwt_expires_days())
    }
    return jwt.encode(payload, config.jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> str:
    try:
        decoded = jwt.decode(token, config.jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise utils_exceptions.Unauthorized('Token has expired')
    except jwt.InvalidTokenError:
        raise utils_exceptions.Unauthorized('Invalid token')
    user_id = decoded.get('id')
    if not user_id:
        raise utils_exceptions.Unauthorized('Invalid token')
    return user_id


def get_bearer_token(request: Request) -> str:
    header = request.headers.get('authorization') or ''
    if header.startswith(BEARER_PREFIX):
        header = header[len(BEARER_PREFIX):]
    token = header.strip()
    if not token:
        raise utils_exceptions.Unauthorized('Authentication required')
    return token


def get_account_record(user_id: str) -> dict:
    try:
        return utils_db.get_db_item(
            partkey=keys_structure.accounts_pk,
            sortkey=keys_structure.accounts_sk.format(account_id=user_id)
        )
    except utils_exceptions.RecordNotFound:
        raise utils_exceptions.Unauthorized('User not found')


def set_request_id(request: Request):
    lambda_context = getattr(request, 'lambda_context', None)
    request_id = getattr(lambda_context, 'aws_request_id', None) or str(uuid4())
    logger.current_request_id = request_id.split('-')[-1]


def anonymous(func):
    """
    Wrapper for endpoint functions open to unauthenticated callers
    """

    @functools.wraps(func)
    def result(request, *args, **kwargs):
        set_request_id(request)
        log_request(request)
        return func(request, *args, **kwargs)

    return result


def authenticate(func=None, *, roles: Optional[Iterable[str]] = None):
    """
    Wrapper for endpoint functions which require user's authentication.
    The decorated function receives the chalice request as its first argument,
    request.auth_result is filled in before the call.
    roles limits access to the listed account roles (Forbidden otherwise)
    """
    allowed_roles = tuple(roles) if roles else None

    def decorator(endpoint):
        @functools.wraps(endpoint)
        def result_auth(request, *args, **kwargs):
            set_request_id(request)
            log_request(request)
            user_id = decode_token(get_bearer_token(request))
            account = get_account_record(user_id)
            role = account.get('role')
            setattr(request, 'auth_result', {
                'user_id': user_id,
                'role': role,
                'vendor_id': account.get('vendor_id')
            })
            setattr(request, 'account', account)
            if allowed_roles is not None and role not in allowed_roles:
                logger.warning(f'authenticate ::: {user_id=} {role=} is not in {allowed_roles}')
                raise utils_exceptions.Forbidden(f'Access denied. {allowed_roles[0].capitalize()} rights required.')
            logger.info(f'authenticate ::: SUCCESS, {endpoint.__name__}, {user_id=}, {role=}')
            return endpoint(request, *args, **kwargs)

        return result_auth

    if func is not None:
        return decorator(func)
    return decorator

"""
Authentication Middleware - access decorators over Flask-Login
"""
from functools import wraps

from flask_login import LoginManager, current_user

from gamecatalog.api_responses import ErrorCode, error_response
from gamecatalog.repositories.user_repository import UserRepository

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login"""
    return UserRepository.get_by_id(user_id)


def access_required(access_type):
    """Require an authenticated user holding *access_type* ("user" or "admin")"""

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return error_response(ErrorCode.UNAUTHORIZED, status_code=401)

            if not current_user.has_access(access_type):
                return error_response(ErrorCode.FORBIDDEN, status_code=403)

            return f(*args, **kwargs)

        return decorated_function

    return decorator

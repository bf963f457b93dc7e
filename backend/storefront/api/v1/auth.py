"""Authentication endpoints: registration, confirmation, sessions and passwords."""

from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import set_access_cookies, unset_jwt_cookies

from storefront.api.deps import (
    auth_service,
    current_identity,
    json_response,
    password_reset_service,
    registration_service,
    require_session,
    timing,
)
from storefront.schemas import (
    AckSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    RegisterSchema,
    RegistrationSchema,
    ResetPasswordSchema,
    ResetTokenCheckSchema,
    SessionSchema,
    TokenSchema,
    UserSchema,
)
from storefront.services.auth.dto import LoginIn
from storefront.services.password_reset.dto import ChangePasswordIn, ResetPasswordIn
from storefront.services.registration.dto import RegistrationIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
registration_schema = RegistrationSchema()
login_schema = LoginSchema()
session_schema = SessionSchema()
token_schema = TokenSchema()
forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()
change_schema = ChangePasswordSchema()
check_schema = ResetTokenCheckSchema()
user_schema = UserSchema()
ack_schema = AckSchema()


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
def register():
    """Create a pending account and email its confirmation link."""

    data = register_schema.load(_json_body())
    result = registration_service().register(RegistrationIn(**data))
    return json_response({"data": registration_schema.dump(result)}, status=201)


@bp.route("/confirm", methods=["GET", "POST"])
@timing
def confirm():
    """Redeem a confirmation token from the query string or JSON body."""

    source = request.args if request.method == "GET" else _json_body()
    data = token_schema.load(source)
    result = registration_service().confirm_email(data["token"])
    return json_response({"data": registration_schema.dump(result)})


@bp.post("/login")
@timing
def login():
    """Authenticate credentials, return the session and set the cookie."""

    data = login_schema.load(_json_body())
    session = auth_service().login(LoginIn(**data))
    response = json_response({"data": session_schema.dump(session)})
    set_access_cookies(response, session.token, max_age=session.expires_in)
    return response


@bp.post("/logout")
@require_session
@timing
def logout():
    identity = current_identity()
    ack = auth_service().logout(jti=identity.jti, expires_at=identity.expires_at)
    response = json_response({"data": ack_schema.dump(ack)})
    unset_jwt_cookies(response)
    return response


@bp.get("/me")
@require_session
@timing
def me():
    """Return the authenticated user profile."""

    user = auth_service().me(current_identity().user_id)
    return json_response({"data": user_schema.dump(user)})


@bp.post("/forgot-password")
@timing
def forgot_password():
    data = forgot_schema.load(_json_body())
    ack = password_reset_service().forgot_password(data["email"])
    return json_response({"data": ack_schema.dump(ack)})


@bp.get("/reset-password/validate")
@timing
def validate_reset_token():
    data = token_schema.load(request.args)
    verdict = password_reset_service().validate_reset_token(data["token"])
    return json_response({"data": check_schema.dump(verdict)})


@bp.post("/reset-password")
@timing
def reset_password():
    data = reset_schema.load(_json_body())
    ack = password_reset_service().reset_password(ResetPasswordIn(**data))
    return json_response({"data": ack_schema.dump(ack)})


@bp.post("/change-password")
@require_session
@timing
def change_password():
    data = change_schema.load(_json_body())
    ack = password_reset_service().change_password(
        ChangePasswordIn(user_id=current_identity().user_id, **data)
    )
    return json_response({"data": ack_schema.dump(ack)})

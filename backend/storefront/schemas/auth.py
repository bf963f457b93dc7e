"""Authentication-related Marshmallow schemas.

Input schemas only check shape; credential policy (domains, lengths) is
enforced by the services so error codes stay stable.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class _Lenient(Schema):
    class Meta:
        unknown = EXCLUDE


class RegisterSchema(_Lenient):
    """Input payload for account registration."""

    email = fields.String(load_default="", validate=validate.Length(max=254))
    password = fields.String(load_default="", validate=validate.Length(max=128))
    name = fields.String(load_default="", validate=validate.Length(max=100))


class LoginSchema(_Lenient):
    """Input payload for authenticating a user."""

    email = fields.String(load_default="", validate=validate.Length(max=254))
    password = fields.String(load_default="", validate=validate.Length(max=128))


class TokenSchema(_Lenient):
    """``{"token": ...}`` body used by confirm and validate calls."""

    token = fields.String(load_default="")


class ForgotPasswordSchema(_Lenient):
    email = fields.String(load_default="", validate=validate.Length(max=254))


class ResetPasswordSchema(_Lenient):
    token = fields.String(load_default="")
    new_password = fields.String(load_default="", validate=validate.Length(max=128))


class ChangePasswordSchema(_Lenient):
    current_password = fields.String(load_default="", validate=validate.Length(max=128))
    new_password = fields.String(load_default="", validate=validate.Length(max=128))


class UserSchema(Schema):
    """Public representation of a user."""

    id = fields.Integer(required=True)
    email = fields.String(required=True)
    name = fields.String(required=True)
    role = fields.String(required=True)
    status = fields.String(required=True)
    picture = fields.String(allow_none=True)
    has_password = fields.Boolean(required=True)


class SessionSchema(Schema):
    """Response payload for a successful login."""

    token = fields.String(required=True)
    token_type = fields.Constant("bearer")
    expires_in = fields.Integer(required=True)
    user = fields.Nested(UserSchema, required=True)


class RegistrationSchema(Schema):
    status = fields.String(required=True)
    message = fields.String(required=True)
    user_id = fields.Integer(required=True)


class ResetTokenCheckSchema(Schema):
    valid = fields.Boolean(required=True)
    reason = fields.String(allow_none=True)


class AckSchema(Schema):
    message = fields.String(required=True)

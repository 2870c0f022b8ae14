from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    pre_load,
    validate,
    validates,
    validates_schema,
)

from models.schemas.common import normalize_email, validate_password_strength


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=normalize_email(data["email"]))
        return data


def make_user_create_schema(existing_user=None, password=None, min_length: int = 8) -> Schema:
    """
    Build a registration schema bound to the current lookup result.

    existing_user: the user found by a case-insensitive email match (or None)
    password: the raw password as submitted, so confirmation can reference it
    """

    class UserCreateSchema(Schema):
        class Meta:
            unknown = EXCLUDE

        user_name = fields.String(required=True, data_key="userName", validate=validate.Length(min=2, max=64))
        first_name = fields.String(required=True, data_key="firstName", validate=validate.Length(min=1, max=255))
        last_name = fields.String(required=True, data_key="lastName", validate=validate.Length(min=1, max=255))
        email = fields.Email(required=True)
        password = fields.String(required=True, load_only=True)
        confirm_password = fields.String(required=True, data_key="confirmPassword", load_only=True)

        @pre_load
        def normalize(self, data, **kwargs):
            if isinstance(data, dict) and "email" in data:
                data = dict(data, email=normalize_email(data["email"]))
            return data

        @validates("email")
        def validate_email_available(self, value, **kwargs):
            if existing_user is not None:
                raise ValidationError("A user with that email already exists.")

        @validates("password")
        def validate_password(self, value, **kwargs):
            validate_password_strength(value, min_length=min_length)

        @validates_schema
        def validate_confirmation(self, data, **kwargs):
            confirm = data.get("confirm_password")
            if confirm is not None and confirm != password:
                raise ValidationError("The passwords must match.", field_name="confirmPassword")

    return UserCreateSchema()


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    user_name = fields.String(data_key="userName")
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    email = fields.String()
    role = fields.Function(lambda obj: obj.role_name)
    is_active = fields.Boolean(data_key="isActive")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")

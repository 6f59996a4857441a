
from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import AnyOf, DataRequired, Email, Length, Optional, Regexp

USERNAME_VALIDATORS = [
    DataRequired(),
    Length(min=3, max=80, message="Username must be between 3 and 80 characters"),
    Regexp(
        r"^[a-zA-Z0-9_.-]+$",
        message="Username can only contain letters, numbers, dots, underscores, and hyphens",
    ),
]

CODE_VALIDATORS = [Optional(), Regexp(r"^\d{6}$", message="Code must be six digits")]

class ApiForm(FlaskForm):
    """Form fed from a JSON request body; the API uses bearer tokens, not CSRF"""

    class Meta:
        csrf = False

    def first_error(self):
        for field_name, messages in self.errors.items():
            return f"{field_name}: {messages[0]}"
        return "Invalid request"

class RegistrationForm(ApiForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=120)])
    username = StringField("Username", validators=USERNAME_VALIDATORS)

class SendCodeForm(ApiForm):
    # Email address or username
    email = StringField("Email or username", validators=[DataRequired(), Length(max=120)])

class VerifyCodeForm(ApiForm):
    email = StringField("Email", validators=[DataRequired(), Length(max=120)])
    code = StringField(
        "Code",
        validators=[
            DataRequired(),
            Regexp(r"^\d{6}$", message="Code must be six digits"),
        ],
    )

class SessionForm(ApiForm):
    session_id = StringField("Session", validators=[DataRequired(), Length(max=100)])

class SignInForm(ApiForm):
    email = StringField("Email or username", validators=[DataRequired(), Length(max=120)])
    password = PasswordField("Password", validators=[DataRequired()])

class IdentityForm(ApiForm):
    """Current password or a one-time code confirming an account change"""

    password = PasswordField("Password", validators=[Optional()])
    code = StringField("Code", validators=CODE_VALIDATORS)

class UsernameForm(IdentityForm):
    new_username = StringField("New username", validators=USERNAME_VALIDATORS)

class AuthMethodForm(IdentityForm):
    method = StringField(
        "Method",
        validators=[
            DataRequired(),
            AnyOf(("Email", "Password", "Both"), message="Method must be Email, Password or Both"),
        ],
    )

class PasswordForm(ApiForm):
    new_password = PasswordField(
        "New password",
        validators=[
            DataRequired(),
            Length(min=6, message="Password must be at least 6 characters long"),
        ],
    )
    old_password = PasswordField("Current password", validators=[Optional()])
    code = StringField("Code", validators=CODE_VALIDATORS)

class EmailChangeForm(ApiForm):
    new_email = StringField("New email", validators=[DataRequired(), Email(), Length(max=120)])

class EmailConfirmForm(EmailChangeForm):
    code = StringField(
        "Code",
        validators=[DataRequired(), Regexp(r"^\d{6}$", message="Code must be six digits")],
    )

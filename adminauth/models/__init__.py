from adminauth.models.admin_user import AdminUser
from adminauth.models.login_attempt import LoginAttempt
from adminauth.models.password_reset_token import PasswordResetToken

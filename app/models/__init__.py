from .users.user import User
from .users.profile import Profile
from .common.login_otp import LoginOtp
from .notifications.admin_notification import AdminNotification
from .projects.project import Project

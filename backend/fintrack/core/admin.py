# fintrack/core/admin.py
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from fastapi import Request
from fintrack.core.security import verify_password
from fintrack.core.config import settings
from fintrack.core.database import db_helper
from fintrack.repositories.user_repository import UserRepository
from fintrack.models.user import User, UserRole
from fintrack.models.progress import UserProgress

# 1. Настройка авторизации в админке
class AdminAuth(AuthenticationBackend):
    async def login(self, request: Request) -> bool:
        form = await request.form()
        email, password = form["username"], form["password"]

        async with db_helper.session_factory() as session:
            user = await UserRepository(session).get_by_email(email)

        # Пускаем только администраторов
        if user and verify_password(password, user.password_hash) and user.role == UserRole.ADMIN.value:
            request.session.update({"admin_user_id": user.id})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return request.session.get("admin_user_id") is not None

authentication_backend = AdminAuth(secret_key=settings.security.JWT_SECRET_KEY.get_secret_value())

# 2. Представления моделей (Views)

class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.email, User.name, User.role, User.created_at, User.last_login_at]
    column_searchable_list = [User.email]
    column_sortable_list = [User.id, User.created_at]
    form_excluded_columns = [User.password_hash, User.progress]
    icon = "fa-solid fa-user"

class UserProgressAdmin(ModelView, model=UserProgress):
    name_plural = "Quiz progress"
    column_list = [
        UserProgress.id, UserProgress.user, UserProgress.level, UserProgress.points,
        UserProgress.quizzes_taken, UserProgress.streak_days, UserProgress.last_quiz_date,
    ]
    column_sortable_list = [UserProgress.points, UserProgress.level, UserProgress.quizzes_taken]
    # Счетчики меняет только движок квизов, руками не редактируем
    can_create = False
    can_edit = False
    icon = "fa-solid fa-trophy"

# 3. Функция инициализации
def setup_admin(app, engine):
    admin = Admin(app, engine, authentication_backend=authentication_backend, title="FinTrack Admin")

    admin.add_view(UserAdmin)
    admin.add_view(UserProgressAdmin)
    return admin

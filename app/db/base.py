# import models so Base.metadata knows every table (used by init_db, alembic, tests)
from app.db.base_class import Base  # noqa: F401
from app.models import admin, comic, kid, submission  # noqa: F401

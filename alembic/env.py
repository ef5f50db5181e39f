# Alembic 환경: DATABASE_URL은 app.database와 동일하게 환경 변수(.env)에서 읽음
from logging.config import fileConfig

from alembic import context

from app.database import DATABASE_URL, engine
from app.models.base import Base
from app.models import chat, event, user  # noqa: F401 (테이블 메타데이터 등록용)

config = context.config
config.set_main_option("sqlalchemy.url", DATABASE_URL)

# alembic.ini 로깅 설정은 CLI 실행 시에만 적용 (앱 기동 중에는 기존 로깅 유지)
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=DATABASE_URL.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=DATABASE_URL.startswith("sqlite"),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

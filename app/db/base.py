from sqlalchemy.orm import declarative_base

# Shared by every model in app.db.models and by alembic/env.py
Base = declarative_base()

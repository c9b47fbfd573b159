"""
Flask extensions initialization.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from sqlalchemy import MetaData

# Deterministic names for unnamed constraints, so migrations can refer to them
NAMING_CONVENTION = {
    'ix': 'ix_%(column_0_label)s',
    'uq': 'uq_%(table_name)s_%(column_0_name)s',
    'fk': 'fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s',
    'pk': 'pk_%(table_name)s',
}

# Database
db = SQLAlchemy(metadata=MetaData(naming_convention=NAMING_CONVENTION))

# Migrations (render_as_batch lets ALTERs run on SQLite)
migrate = Migrate(render_as_batch=True)

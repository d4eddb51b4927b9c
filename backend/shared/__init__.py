"""
Shared module for common utilities used by the tableside service and CLI.

STRUCTURE:
- shared.security: Staff authentication and rate limiting
  - auth.py: JWT signing/verification, current_staff_context, require_roles
  - rate_limit.py: slowapi limiter for public endpoints

- shared.infrastructure: Database and messaging
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and log filter
  - events/: Redis pub/sub change notifications

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, TableType, OrderStatus, transitions

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Phone, name, table id and quantity validation
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_staff_context
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import NotFoundError, ForbiddenError
    from shared.utils.validators import normalize_phone
"""

"""
Shared module for common utilities across the REST API and the WS gateway.

STRUCTURE:
- shared.security: Authentication
  - auth.py: JWT signing/verification, get_current_user, require_owner/require_employee

- shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy engine/session factory, safe_commit()
  - correlation.py: X-Request-ID middleware and log filter

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging, security audit helpers
  - constants.py: Roles, TaskStatus, TaskPriority, MessageType

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging, gateway errors

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, get_current_user
    from shared.infrastructure.db import get_db_context, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import Roles, TaskStatus
    from shared.utils.exceptions import NotFoundError, PersistenceError
"""

"""
Shared module for code common to the REST API, the POS event stream and the
print agent.

STRUCTURE:
- shared.config: settings.py (pydantic-settings), logging.py (structured
  logging), constants.py (roles, payment states, stream frame types)
- shared.security: JWT bearer tokens, bcrypt, login rate limiting
- shared.infrastructure: SQLAlchemy sessions, safe_commit(), correlation ids
- shared.utils: HTTP exceptions with auto-logging, shared pydantic schemas
- shared.print_eligibility: the print-eligibility predicate

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_user_context
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.utils.exceptions import NotFoundError
    from shared.print_eligibility import is_print_eligible
"""

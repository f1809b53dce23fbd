import logging
import re
import secrets
import string
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .errors import CapacityError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

# Base62 alphabet for generated codes (case-sensitive)
CHARSET = string.digits + string.ascii_uppercase + string.ascii_lowercase

ALIAS_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 50

DEFAULT_CODE_LENGTH = 6
MAX_CODE_LENGTH = 20
COLLISIONS_PER_LENGTH = 10
MAX_TOTAL_ATTEMPTS = 100

# Path segments the routing layer keeps for itself
RESERVED_WORDS = frozenset([
    'api', 'admin', 'www', 'mail', 'ftp', 'localhost',
    'dashboard', 'analytics', 'auth', 'login', 'logout', 'register',
    'about', 'contact', 'help', 'support', 'terms', 'privacy',
    'health', 'status', 'docs', 'documentation', 'static', 'openapi', 'redoc'
])


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Generate a random base62 code of the given length"""
    return ''.join(secrets.choice(CHARSET) for _ in range(length))


def validate_alias_format(alias: str) -> str:
    """
    Check alias charset and length.

    Args:
        alias: The requested alias

    Returns:
        The alias with surrounding whitespace removed

    Raises:
        ValidationError: If the alias is empty, too short, too long or has bad characters
    """
    alias = (alias or "").strip()

    if not alias:
        raise ValidationError("Custom alias cannot be empty")

    if not ALIAS_PATTERN.match(alias):
        raise ValidationError(
            "Custom alias can only contain letters, numbers, hyphens, and underscores"
        )

    if len(alias) < ALIAS_MIN_LENGTH:
        raise ValidationError(f"Custom alias must be at least {ALIAS_MIN_LENGTH} characters long")

    if len(alias) > ALIAS_MAX_LENGTH:
        raise ValidationError(f"Custom alias cannot exceed {ALIAS_MAX_LENGTH} characters")

    return alias


def validate_alias_not_reserved(alias: str) -> str:
    """Reject aliases that collide with reserved routes (case-insensitive)"""
    if alias.lower() in RESERVED_WORDS:
        raise ValidationError(f"'{alias}' is reserved and cannot be used")
    return alias


def is_code_available(code: str, db: Session) -> bool:
    """
    Check if a code is free in both the short code and alias namespaces.

    Advisory only: the unique constraint on insert is the authoritative check.
    """
    from ..models import Link

    existing = db.query(Link.id).filter(
        or_(Link.short_code == code, Link.custom_alias == code)
    ).first()

    return existing is None


def next_code_length(base_length: int, attempt: int) -> int:
    """Code length to use for the given zero-based attempt number"""
    length = base_length + attempt // COLLISIONS_PER_LENGTH
    return min(length, MAX_CODE_LENGTH)


def generate_unique_code(db: Session, length: int = DEFAULT_CODE_LENGTH,
                         start_attempt: int = 0) -> tuple[str, int]:
    """
    Generate a code not present in the registry.

    Every COLLISIONS_PER_LENGTH consecutive collisions grow the code by one
    character. start_attempt lets callers that lost an insert race continue
    the same attempt budget.

    Returns:
        Tuple of (code, attempts_used)

    Raises:
        CapacityError: After MAX_TOTAL_ATTEMPTS collisions
    """
    attempt = start_attempt

    while attempt < MAX_TOTAL_ATTEMPTS:
        code = generate_code(next_code_length(length, attempt))
        attempt += 1

        if is_code_available(code, db):
            return code, attempt

        logger.debug("Short code collision on %s (attempt %d)", code, attempt)

    logger.error("Short code space exhausted after %d attempts", attempt)
    raise CapacityError("Unable to generate unique short code")


def allocate_code(db: Session, alias: Optional[str] = None,
                  length: int = DEFAULT_CODE_LENGTH) -> str:
    """
    Allocate a short code, either the validated custom alias or a generated one.

    Args:
        db: Database session for uniqueness checks
        alias: Optional requested alias
        length: Starting length for generated codes

    Raises:
        ValidationError: Bad alias format or reserved word
        ConflictError: Alias already taken
        CapacityError: Code space exhausted
    """
    if alias is not None:
        alias = validate_alias_not_reserved(validate_alias_format(alias))
        if not is_code_available(alias, db):
            raise ConflictError("This alias is already taken")
        return alias

    code, _ = generate_unique_code(db, length)
    return code

"""
PostgreSQL (Supabase) database access

This module centralizes every way the backend reaches Supabase:
- psycopg2 direct connections (raw SQL, used by all repositories)
- Supabase client (Storage buckets for uploaded photos and refund proofs)

Author: TM3
Updated: 2026-03-02
"""
import time
import logging
import psycopg2
from psycopg2.extras import RealDictCursor
from supabase import create_client, Client
from .config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# psycopg2 Direct Connections (for raw SQL queries)
# ============================================================================

def _get_database_url() -> str:
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")
    return database_url


def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Use this for API responses and any code that expects dict rows.

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM products")
        results = cursor.fetchall()  # Returns list of dicts
        cursor.close()
        conn.close()
    """
    return psycopg2.connect(_get_database_url(), cursor_factory=RealDictCursor)


# ============================================================================
# Supabase Client (for Storage)
# ============================================================================

_supabase: Client = None


def get_supabase() -> Client:
    """
    Return the shared Supabase client, creating it on first use

    Usage:
        @router.post("/upload")
        def upload(sb: Client = Depends(get_supabase)):
            ...
    """
    global _supabase
    if _supabase is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise Exception("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")
        _supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    return _supabase


# ============================================================================
# Database Connection with Retry Logic (SSL Failure Recovery)
# ============================================================================

def _connect_with_retry(max_retries: int, retry_delay: float):
    database_url = _get_database_url()
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(database_url)

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")
                raise last_error

        except Exception as e:
            # For non-connection errors, fail immediately
            logger.error(f"Unexpected error during connection: {e}")
            raise

    raise last_error if last_error else Exception("Connection failed after all retries")


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Get a psycopg2 connection with automatic retry on SSL/connection failures

    Retries up to max_retries times with exponential backoff between
    attempts. Non-connection errors are raised immediately.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    return _connect_with_retry(max_retries, retry_delay)

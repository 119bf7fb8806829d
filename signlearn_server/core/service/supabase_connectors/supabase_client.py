import os
from typing import Optional

import logfire
from supabase import Client, create_client

from signlearn_server.core.exceptions import ConfigurationError


def _supabase_url() -> str:
    url = os.environ.get("SUPABASE_URL")
    if not url:
        logfire.error("SUPABASE_URL environment variable is not set")
        raise ConfigurationError()
    return url


def get_supabase_service_role_client() -> Client:
    """This function returns a supabase client with the service role key. Use only on the server side."""
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    if not key:
        logfire.error("Supabase service role key is not set")
        raise ConfigurationError()
    return create_client(supabase_url=_supabase_url(), supabase_key=key)


def resolve_user_id_from_token(jwt_token: Optional[str], client: Optional[Client] = None) -> Optional[str]:
    """
    Best-effort lookup of the user id behind a session token.

    Never raises: a missing, invalid or expired token only yields None, so the
    verification flow proceeds without a user id.
    """
    if not jwt_token:
        return None
    try:
        client = client or get_supabase_service_role_client()
        response = client.auth.get_user(jwt_token)
        user = response.user if response else None
        if user and user.id:
            logfire.info(f"Resolved user id {user.id} from session token")
            return user.id
        logfire.warning("Session token did not resolve to a user")
    except Exception as e:
        logfire.warning(f"Could not fetch user from token: {str(e)}")
    return None

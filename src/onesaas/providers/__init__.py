"""External provider adapters (GitHub, Supabase, Vercel)."""

from .base import ProviderHTTP, close_shared_async_client, extract_error_message
from .github import GitHubClient
from .supabase import SupabaseManagementClient, build_database_url
from .vercel import VercelClient, deploy_url_for, slugify_project_name

__all__ = [
    "GitHubClient",
    "ProviderHTTP",
    "SupabaseManagementClient",
    "VercelClient",
    "build_database_url",
    "close_shared_async_client",
    "deploy_url_for",
    "extract_error_message",
    "slugify_project_name",
]

"""OneSaaS: interactive provisioning of a GitHub + Supabase + Vercel SaaS project."""

__version__ = "0.1.0"

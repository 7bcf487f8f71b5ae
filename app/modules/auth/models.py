# Supabase Auth
# Credentials live in Supabase's auth.users table; the application's own
# profile (name, role) lives in public.users, keyed by the same id.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users, returns the access token
- auth.get_user() - Verify an access token (used by core.identity on every request)
- auth.sign_out() - Clear the provider-side session

The access token is stored in the `session-token` cookie (httpOnly, sameSite=lax,
7-day max-age). A users row must exist for the token to resolve to a principal.
"""

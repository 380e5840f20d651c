# Supabase Auth
# Sign-in is delegated to Supabase's built-in authentication; no auth tables are owned here.

"""
Calls used by AuthService:
- auth.sign_up() - register a member (display name kept in user_metadata)
- auth.sign_in_with_password() - exchange credentials for a session JWT
- auth.get_user() - resolve the caller of every protected route from its bearer token
- auth.sign_out() - end the session

The governance profile (role, joined_at, last_active) lives in user_profiles and is
created the first time a token is seen, see app.core.dependencies.get_current_profile.
"""

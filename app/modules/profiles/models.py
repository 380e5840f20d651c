# Supabase table: user_profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key) - same value as uid
- uid: uuid (unique, references auth.users.id)
- email: text (not null)
- display_name: text (not null)
- avatar: text (nullable)
- role: text (not null, default: 'member') - values: member, admin
- joined_at: bigint (epoch ms)
- last_active: bigint (epoch ms)
- created_at: bigint (epoch ms)
- updated_at: bigint (epoch ms)

A row is created lazily the first time a signed-in user hits the API.
"""

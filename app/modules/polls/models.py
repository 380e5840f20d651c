# Supabase tables: votes, user_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

votes:
- id: text (primary key)
- title: text (not null)
- description: text
- game: text (nullable)
- options: jsonb - [{"id": ..., "text": ..., "votes": 0}, ...] chosen by the author
- created_by: uuid
- end_date: bigint (epoch ms)
- is_active: boolean (default: true)
- total_votes: integer (default: 0)
- revision: integer (default: 0)
- created_at, updated_at: bigint

user_votes:
- id: text (primary key)
- vote_id: text (foreign key to votes.id)
- user_id: uuid
- option_id: text
- voted_at: bigint
- created_at, updated_at: bigint
- unique constraint on (user_id, vote_id)
"""

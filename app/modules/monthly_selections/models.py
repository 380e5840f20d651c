# Supabase table: monthly_selections
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

monthly_selections:
- id: text (primary key)
- month: integer (1-12, not null)
- year: integer (not null)
- proposal_ids: jsonb - ordered list of proposals.id, best ranked first
- status: text (default: 'active') - values: active, completed
- final_vote_ids: jsonb - final_votes.id opened for the selection, same order as proposal_ids
- end_date: bigint (epoch ms) - last millisecond of the month, UTC
- created_at, updated_at: bigint (epoch ms)
- unique constraint on (month, year)
"""

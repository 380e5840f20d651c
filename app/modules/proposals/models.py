# Supabase tables: proposals, proposal_discussions, discussion_replies
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

proposals:
- id: text (primary key, uuid generated by the service)
- title: text (not null)
- description: text (not null)
- game: text (nullable) - values: apex-legends, valorant
- created_by: uuid (not null) - author uid
- status: text (not null, default: 'pending') - values: pending, approved, rejected
- upvotes: integer (not null, default: 0) - always equals length of upvoted_by
- upvoted_by: jsonb (not null, default: '[]') - list of uids
- revision: integer (not null, default: 0) - bumped on every counter write
- created_at: bigint (epoch ms)
- updated_at: bigint (epoch ms)

proposal_discussions:
- id: text (primary key)
- proposal_id: text (foreign key to proposals.id, not null)
- author_id: uuid (not null)
- author_name: text (not null)
- content: text (not null)
- created_at: bigint
- updated_at: bigint

discussion_replies:
- id: text (primary key)
- discussion_id: text (foreign key to proposal_discussions.id, not null)
- proposal_id: text (foreign key to proposals.id, not null)
- author_id: uuid (not null)
- author_name: text (not null)
- content: text (not null)
- created_at: bigint
- updated_at: bigint
"""

# Supabase tables: final_votes, final_user_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

final_votes:
- id: text (primary key)
- proposal_id: text (foreign key to proposals.id, not null)
- title, description: text (copied from the proposal at selection time)
- game: text (nullable)
- created_by: uuid - author of the proposal
- end_date: bigint (epoch ms) - creation + voting window
- is_active: boolean (default: true) - never flipped; expiry is read from end_date
- total_votes: integer (default: 0) - sum of options[].votes
- options: jsonb - [{"id": "for", "text": "Pour", "votes": 0},
                    {"id": "abstain", "text": "Ne se prononce pas", "votes": 0},
                    {"id": "against", "text": "Contre", "votes": 0}]
- revision: integer (default: 0)
- created_at, updated_at: bigint (epoch ms)

final_user_votes:
- id: text (primary key)
- final_vote_id: text (foreign key to final_votes.id, not null)
- user_id: uuid (not null)
- option_id: text (not null) - for, abstain, against
- voted_at: bigint (epoch ms)
- created_at, updated_at: bigint
- unique constraint on (user_id, final_vote_id)
"""

# Supabase tables: applications, application_votes, application_comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

applications:
- id: text (primary key)
- applicant_id: uuid (not null)
- applicant_name, applicant_email: text
- game: text (not null) - apex-legends, valorant
- experience, motivation, availability: text (not null)
- additional_info: text (nullable)
- status: text (default: 'pending') - values: pending, under_review (reserved), accepted, rejected
- review_end_date: bigint (epoch ms)
- total_votes: integer (default: 0)
- votes: jsonb - {"accept": 0, "reject": 0, "abstain": 0}
- voted_by: jsonb - list of voter uids
- revision: integer (default: 0)
- created_at, updated_at: bigint (epoch ms)

application_votes:
- id: text (primary key)
- application_id: text (foreign key to applications.id)
- voter_id: uuid
- vote: text - accept, reject, abstain
- comment: text (nullable)
- voted_at: bigint
- created_at, updated_at: bigint
- unique constraint on (voter_id, application_id)

application_comments:
- id: text (primary key)
- application_id: text (foreign key to applications.id)
- author_id: uuid
- author_name: text
- content: text
- type: text - general, concern, support
- created_at, updated_at: bigint
"""

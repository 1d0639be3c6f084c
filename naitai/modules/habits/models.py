# Supabase table: habits
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

habits:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- description: text (not null, default: '')
- completed: boolean (not null, default: false)
- user_id: uuid (foreign key to auth.users.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Row-level security is enabled on habits. Policies restrict select, insert,
update and delete to rows where user_id = auth.uid(), so the API never filters
by owner itself; it only talks to the table through a client carrying the
caller's JWT.
"""

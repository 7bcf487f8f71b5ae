# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null, stored lower-case)
- name: text (not null)
- role: text (not null, default: 'guest') - values: guest, admin, super_admin, application_admin
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Note: passwords and tokens live in auth.users, managed by Supabase Auth.
The role column is the only source of a principal's role.
"""

# Supabase table: weddings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

weddings:
- id: uuid (primary key)
- name: text (not null)
- date: date (not null)
- location: text (not null)
- description: text (nullable)
- code: text (unique, not null) - short human-readable wedding code
- subdomain: text (unique, nullable)
- status: text (default: 'draft') - values: draft, active, completed, archived
- super_admin_id: uuid (foreign key to users.id) - the owner
- wedding_admin_ids: uuid[] (default: '{}') - co-admins
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""

# Supabase table: wedding_invitations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

wedding_invitations:
- id: uuid (primary key)
- wedding_id: uuid (foreign key to weddings.id, not null, on delete cascade)
- email: text (not null, lower-case)
- role: text (not null) - values: admin, guest
- status: text (not null, default: 'pending') - values: pending, accepted, expired
- invited_by: uuid (foreign key to users.id, nullable)
- created_at: timestamp (default: now())
- expires_at: timestamp (not null)
- accepted_at: timestamp (nullable)
- accepted_by: uuid (foreign key to users.id, nullable)

Lifecycle: pending -> accepted (matching signup/login) or pending -> expired
(time based, applied lazily on read). accepted and expired are terminal.
There is no revoked state: withdrawing an invitation deletes the row.
"""

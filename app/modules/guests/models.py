# Supabase table: wedding_guests
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

wedding_guests:
- id: uuid (primary key)
- wedding_id: uuid (foreign key to weddings.id, not null, on delete cascade)
- guest_id: uuid (foreign key to users.id, nullable) - set once the guest has an account
- guest_email: text (not null, lower-case)
- guest_name: text (nullable)
- invited_by: uuid (foreign key to users.id, nullable)
- plus_one: boolean (default: false)
- plus_one_name: text (nullable)
- rsvp_status: text (not null, default: 'pending') - values: pending, attending, not_attending, maybe
- dietary_restrictions: text (nullable)
- invited_at: timestamp (default: now())
- responded_at: timestamp (nullable)
- unique constraint on (wedding_id, guest_email)
"""

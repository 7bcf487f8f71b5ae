# Supabase table: events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

events:
- id: uuid (primary key)
- wedding_id: uuid (foreign key to weddings.id, not null, on delete cascade)
- created_by: uuid (foreign key to users.id)
- title: text (not null)
- description: text (nullable)
- start_time: timestamp (not null)
- end_time: timestamp (nullable)
- location: text (nullable)
- event_type: text (default: 'other') - values: ceremony, reception, rehearsal, party, other
- is_public: boolean (default: true) - non-public events are hidden from guests
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""

# Supabase table: media
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

media:
- id: uuid (primary key)
- wedding_id: uuid (foreign key to weddings.id, not null, on delete cascade)
- uploaded_by: uuid (foreign key to users.id, nullable)
- type: text (not null) - values: photo, video
- url: text (not null) - public URL returned by the storage backend
- storage_path: text (not null) - object key inside the bucket, used for deletion
- filename: text (nullable)
- size: bigint (nullable)
- mime_type: text (nullable)
- description: text (nullable)
- status: text (not null, default: 'pending') - values: pending, approved
- approved_by: uuid (nullable)
- approved_at: timestamp (nullable)
- created_at: timestamp (default: now())

There is no 'rejected' status: rejecting an upload deletes the row and the stored object.
"""

# Supabase tables: questions, answers
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

questions:
- id: uuid (primary key)
- wedding_id: uuid (foreign key to weddings.id, not null, on delete cascade)
- created_by: uuid (foreign key to users.id)
- question_text: text (not null)
- question_type: text (not null) - values: text, multiple_choice, yes_no, rating
- options: jsonb (nullable) - only set for multiple_choice
- is_required: boolean (default: false)
- is_public: boolean (default: true) - non-public questions are hidden from guests
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

answers:
- id: uuid (primary key)
- question_id: uuid (foreign key to questions.id, not null, on delete cascade)
- wedding_id: uuid (foreign key to weddings.id, not null)
- answered_by: uuid (foreign key to users.id, not null)
- answer_text: text (not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
- unique constraint on (question_id, answered_by)
"""

"""Print the Supabase schema for the exam simulator (run it in the Supabase SQL Editor)."""
import os

from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")

# SQL schema
SCHEMA_SQL = """
-- Question Bank
CREATE TABLE IF NOT EXISTS questions (
    id BIGSERIAL PRIMARY KEY,
    stem TEXT NOT NULL,
    choices JSONB NOT NULL,
    correct_index INT NOT NULL CHECK (correct_index >= 0),
    topic TEXT,
    difficulty TEXT,
    explanation TEXT,
    image_url TEXT,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Exam Sessions (finished_at IS NULL = still open)
CREATE TABLE IF NOT EXISTS sessions (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    mode TEXT NOT NULL CHECK (mode IN ('exam', 'practice')),
    question_order BIGINT[] NOT NULL,
    current_index INT NOT NULL DEFAULT 0,
    total INT NOT NULL,
    score INT NOT NULL DEFAULT 0,
    started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    finished_at TIMESTAMPTZ,
    CHECK (current_index >= 0 AND current_index < total),
    CHECK (score >= 0 AND score <= total)
);

-- Attempts (insert-only answer log)
CREATE TABLE IF NOT EXISTS attempts (
    id BIGSERIAL PRIMARY KEY,
    session_id UUID NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    question_id BIGINT NOT NULL REFERENCES questions(id),
    choice_index INT NOT NULL CHECK (choice_index >= 0),
    correct BOOLEAN NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_questions_active_topic ON questions(is_active, topic);
CREATE INDEX IF NOT EXISTS idx_sessions_user_open ON sessions(user_id, started_at DESC) WHERE finished_at IS NULL;
CREATE INDEX IF NOT EXISTS idx_attempts_session_id ON attempts(session_id);

-- Row level security: users only see their own sessions and attempts
ALTER TABLE sessions ENABLE ROW LEVEL SECURITY;
ALTER TABLE attempts ENABLE ROW LEVEL SECURITY;
CREATE POLICY own_sessions ON sessions FOR ALL USING (auth.uid() = user_id) WITH CHECK (auth.uid() = user_id);
CREATE POLICY own_attempts ON attempts FOR ALL USING (auth.uid() = user_id) WITH CHECK (auth.uid() = user_id);
"""


if __name__ == "__main__":
    print("Exam simulator schema")
    print(f"URL: {SUPABASE_URL}")
    print("\nNote: the Supabase client cannot run DDL, so paste this into the Supabase SQL Editor:")
    print(SCHEMA_SQL)

"""ASCPi exam simulator: session engine, Supabase stores and question bank authoring."""

__version__ = "0.1.0"

"""Infrastructure adapters (database engine and SQLModel repositories)."""

"""Field schema: definitions, dependency evaluation, validation, and storage."""

"""CRUD backend: users, JWT auth and local/MinIO file storage."""

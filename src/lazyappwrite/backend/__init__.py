"""Backend (Appwrite) access helpers."""

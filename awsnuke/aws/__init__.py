"""AWS session, credential and region helpers."""

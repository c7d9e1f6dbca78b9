"""Dimensional Chat: roleplay chat backend with group speaker selection."""

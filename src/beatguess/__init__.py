"""Beatmap trivia game backend."""
